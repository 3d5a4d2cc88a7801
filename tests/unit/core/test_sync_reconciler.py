"""Tests for SyncReconciler."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from mobiledge import (
    CacheKeyStore,
    ChangeRecord,
    EdgeConfig,
    ErrorKind,
    InMemoryIdentityStore,
    SyncReconciler,
    ValidationError,
)


@pytest.fixture
def audit() -> MagicMock:
    return MagicMock()


@pytest.fixture
def reconciler(
    identities: InMemoryIdentityStore,
    config: EdgeConfig,
    cache: CacheKeyStore,
    audit: MagicMock,
) -> SyncReconciler:
    return SyncReconciler(identities, config=config, receipts=cache, audit=audit)


def change(change_id: str, change_type: str, **data) -> dict:
    return {"id": change_id, "type": change_type, "data": data, "timestamp": "2024-06-01T10:00:00Z"}


class TestSyncReconciler:
    """Tests for SyncReconciler."""

    @pytest.mark.asyncio
    async def test_applies_changes_in_order(
        self, reconciler: SyncReconciler, identities: InMemoryIdentityStore
    ) -> None:
        outcomes = await reconciler.apply(
            "u1",
            [
                change("c1", "wishlist_add", product_id="p1"),
                change("c2", "cart_update", product_id="p2", quantity=3),
                change("c3", "profile_update", phone="+221 77 000 00 00"),
                change(
                    "c4", "address_add", address_line="12 Rue Carnot", city="Dakar", country="SN"
                ),
                change("c5", "wishlist_remove", product_id="p1"),
            ],
        )

        assert [o.change_id for o in outcomes] == ["c1", "c2", "c3", "c4", "c5"]
        assert all(o.success for o in outcomes)
        assert identities.wishlists["u1"] == {}
        assert identities.carts["u1"] == {"p2": 3}
        assert identities.users["u1"]["phone"] == "+221 77 000 00 00"
        assert identities.addresses["u1"][0]["city"] == "Dakar"

    @pytest.mark.asyncio
    async def test_failures_do_not_stop_the_batch(
        self, reconciler: SyncReconciler, identities: InMemoryIdentityStore
    ) -> None:
        outcomes = await reconciler.apply(
            "u1",
            [
                change("c1", "wishlist_add", product_id="ghost"),
                change("c2", "teleport"),
                {"type": "wishlist_add", "data": {"product_id": "p1"}},
                "garbage",
                change("c5", "wishlist_add", product_id="p2"),
            ],
        )

        assert [o.success for o in outcomes] == [False, False, False, False, True]
        assert outcomes[0].error_kind is ErrorKind.NOT_FOUND
        assert outcomes[1].error_kind is ErrorKind.VALIDATION
        assert outcomes[1].change_id == "c2"
        assert outcomes[2].change_id is None
        assert outcomes[3].error_kind is ErrorKind.VALIDATION
        assert list(identities.wishlists["u1"]) == ["p2"]

    @pytest.mark.asyncio
    async def test_replaying_a_batch_is_idempotent(
        self, identities: InMemoryIdentityStore, config: EdgeConfig
    ) -> None:
        """Without receipts, handlers alone make a replay a no-op."""
        reconciler = SyncReconciler(identities, config=config)
        batch = [
            change("c1", "wishlist_add", product_id="p1"),
            change("c2", "wishlist_add", product_id="p1"),
            change("c3", "cart_update", product_id="p2", quantity=2),
            change("c4", "wishlist_remove", product_id="p3"),
            change("c5", "profile_update", full_name="Aminata D."),
        ]

        first = await reconciler.apply("u1", batch)
        state = (
            dict(identities.wishlists["u1"]),
            dict(identities.carts["u1"]),
            identities.users["u1"]["full_name"],
        )
        second = await reconciler.apply("u1", batch)

        assert [o.success for o in first] == [o.success for o in second]
        assert (
            dict(identities.wishlists["u1"]),
            dict(identities.carts["u1"]),
            identities.users["u1"]["full_name"],
        ) == state

    @pytest.mark.asyncio
    async def test_receipts_acknowledge_replayed_address(
        self, reconciler: SyncReconciler, identities: InMemoryIdentityStore
    ) -> None:
        batch = [change("c1", "address_add", address_line="1 Rue", city="Dakar", country="SN")]

        first = await reconciler.apply("u1", batch)
        second = await reconciler.apply("u1", batch)

        assert first[0].success and not first[0].replayed
        assert second[0].success and second[0].replayed
        assert len(identities.addresses["u1"]) == 1

    @pytest.mark.asyncio
    async def test_receipts_are_per_owner(
        self, reconciler: SyncReconciler, identities: InMemoryIdentityStore
    ) -> None:
        batch = [change("c1", "wishlist_add", product_id="p1")]

        await reconciler.apply("u1", batch)
        outcomes = await reconciler.apply("u2", batch)

        assert outcomes[0].replayed is False
        assert "p1" in identities.wishlists["u2"]

    @pytest.mark.asyncio
    async def test_failed_change_leaves_no_receipt(
        self, reconciler: SyncReconciler, identities: InMemoryIdentityStore
    ) -> None:
        batch = [change("c1", "wishlist_add", product_id="p9")]
        assert (await reconciler.apply("u1", batch))[0].success is False

        identities.catalog.add_product("p9", store_id="s1", name="Late arrival", price=1)
        outcomes = await reconciler.apply("u1", batch)

        assert outcomes[0].success is True
        assert outcomes[0].replayed is False

    @pytest.mark.asyncio
    async def test_profile_update_allow_list(
        self, reconciler: SyncReconciler, identities: InMemoryIdentityStore
    ) -> None:
        await reconciler.apply(
            "u1", [change("c1", "profile_update", name="Awa", email="x@evil.com", role="admin")]
        )

        user = identities.users["u1"]
        assert user["full_name"] == "Awa"
        assert user["email"] == "aminata@example.com"
        assert "role" not in user

    @pytest.mark.asyncio
    async def test_cart_quantity_zero_removes_item(
        self, reconciler: SyncReconciler, identities: InMemoryIdentityStore
    ) -> None:
        await reconciler.apply("u1", [change("c1", "cart_update", product_id="p1", quantity=2)])
        await reconciler.apply("u1", [change("c2", "cart_update", product_id="p1", quantity=0)])

        assert identities.carts["u1"] == {}

    @pytest.mark.asyncio
    async def test_accepts_change_records(self, reconciler: SyncReconciler) -> None:
        record = ChangeRecord(id="c1", type="wishlist_add", data={"product_id": "p1"})

        outcomes = await reconciler.apply("u1", [record])

        assert outcomes[0].success is True
        assert outcomes[0].to_dict() == {
            "change_id": "c1",
            "type": "wishlist_add",
            "success": True,
            "error_kind": None,
            "error": None,
            "replayed": False,
        }

    @pytest.mark.asyncio
    async def test_unexpected_writer_error_is_internal(
        self, config: EdgeConfig, caplog
    ) -> None:
        writer = AsyncMock()
        writer.remove_from_wishlist.side_effect = RuntimeError("connection reset")
        reconciler = SyncReconciler(writer, config=config)

        outcomes = await reconciler.apply("u1", [change("c1", "wishlist_remove", product_id="p1")])

        assert outcomes[0].success is False
        assert outcomes[0].error_kind is ErrorKind.INTERNAL
        assert outcomes[0].error == "connection reset"
        assert "Sync of change c1" in caplog.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("changes", [[], "not a list", None])
    async def test_invalid_batch(self, reconciler: SyncReconciler, changes) -> None:
        with pytest.raises(ValidationError):
            await reconciler.apply("u1", changes)

    @pytest.mark.asyncio
    async def test_owner_required(self, reconciler: SyncReconciler) -> None:
        with pytest.raises(ValidationError):
            await reconciler.apply("", [change("c1", "wishlist_add", product_id="p1")])

    @pytest.mark.asyncio
    async def test_summary_audit_event(self, reconciler: SyncReconciler, audit: MagicMock) -> None:
        await reconciler.apply(
            "u1",
            [
                change("c1", "wishlist_add", product_id="p1"),
                change("c2", "wishlist_add", product_id="ghost"),
            ],
        )

        event = audit.emit.call_args.args[0]
        assert (event.data_type, event.action) == ("sync", "completed")
        assert event.metadata == {"changes_count": 2, "successful": 1, "failed": 1}
