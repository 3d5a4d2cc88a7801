"""Tests for SnapshotBuilder."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from mobiledge import (
    ActivitySummary,
    AuditEvent,
    CacheKeyStore,
    DomainType,
    EdgeConfig,
    InMemoryAuditStore,
    InMemoryCatalog,
    InMemoryIdentityStore,
    NotFoundError,
    SnapshotBuilder,
    SyncReconciler,
    ValidationError,
)
from mobiledge.utils.text import format_bytes


@pytest.fixture
def audit() -> MagicMock:
    return MagicMock()


@pytest.fixture
def builder(
    catalog: InMemoryCatalog,
    identities: InMemoryIdentityStore,
    cache: CacheKeyStore,
    config: EdgeConfig,
    audit: MagicMock,
) -> SnapshotBuilder:
    return SnapshotBuilder(catalog, identities, cache, config=config, audit=audit)


class TestProductSnapshot:
    """Tests for the products snapshot."""

    @pytest.mark.asyncio
    async def test_build_products(self, builder: SnapshotBuilder) -> None:
        result = await builder.build("u1", "products")

        assert result.domain is DomainType.PRODUCTS
        assert result.count == 3
        assert result.size_bytes > 0
        assert result.size.endswith("B")

        snapshot = await builder.get_snapshot("u1", "products")
        assert [p["id"] for p in snapshot["data"]] == ["p1", "p2", "p3"]
        assert snapshot["metadata"]["type"] == "products"
        assert snapshot["metadata"]["count"] == 3
        assert snapshot["metadata"]["version"] == "1.0"

    @pytest.mark.asyncio
    async def test_projection(self, builder: SnapshotBuilder) -> None:
        await builder.build("u1", "products")
        boubou = (await builder.get_snapshot("u1", "products"))["data"][0]

        assert boubou["store"] == {
            "id": "s1",
            "name": "Dakar Style",
            "logo": "https://cdn.example.com/s1.png",
            "location": "Dakar, Senegal",
        }
        assert boubou["category"] == {"name": "Dresses", "slug": "dresses"}
        assert boubou["description"] == "Hand-embroidered boubou"
        assert boubou["cached_at"]

    @pytest.mark.asyncio
    async def test_gallery_is_capped(self, builder: SnapshotBuilder) -> None:
        await builder.build("u1", "products")
        data = (await builder.get_snapshot("u1", "products"))["data"]
        by_id = {p["id"]: p for p in data}

        assert by_id["p1"]["images"]["thumbnail"] == "https://cdn.example.com/p1-1.jpg"
        assert len(by_id["p1"]["images"]["gallery"]) == 3
        # Comma separated image columns are split
        assert by_id["p2"]["images"]["gallery"] == [
            "https://cdn.example.com/p2-1.jpg",
            "https://cdn.example.com/p2-2.jpg",
        ]
        assert "images" not in by_id["p3"]

    @pytest.mark.asyncio
    async def test_description_truncated_to_budget(
        self, builder: SnapshotBuilder, catalog: InMemoryCatalog
    ) -> None:
        catalog.products["p1"]["description"] = "x" * 500

        await builder.build("u1", "products")
        boubou = (await builder.get_snapshot("u1", "products"))["data"][0]

        assert len(boubou["description"]) == 200
        assert boubou["description"].endswith("...")
        assert boubou["description"][:197] == "x" * 197

    @pytest.mark.asyncio
    async def test_details_and_images_can_be_left_out(self, builder: SnapshotBuilder) -> None:
        await builder.build("u1", "products", {"include_images": False, "include_details": False})
        boubou = (await builder.get_snapshot("u1", "products"))["data"][0]

        assert "images" not in boubou
        assert "description" not in boubou

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("options", "expected"),
        [
            ({"categories": ["dresses"]}, ["p1"]),
            ({"price_range": {"min": 4000, "max": 10000}}, ["p2"]),
            ({"location": "abidjan"}, ["p3"]),
            ({"limit": 2}, ["p1", "p2"]),
        ],
    )
    async def test_filters(
        self, builder: SnapshotBuilder, options: dict, expected: list[str]
    ) -> None:
        result = await builder.build("u1", "products", options)
        snapshot = await builder.get_snapshot("u1", "products")

        assert [p["id"] for p in snapshot["data"]] == expected
        assert result.count == len(expected)
        assert snapshot["metadata"]["filters"]["limit"] == options.get("limit", 100)

    @pytest.mark.asyncio
    async def test_inactive_products_and_stores_excluded(
        self, builder: SnapshotBuilder, catalog: InMemoryCatalog
    ) -> None:
        catalog.products["p2"]["is_active"] = False
        catalog.stores["s2"]["is_active"] = False

        result = await builder.build("u1", "products")

        assert result.count == 1

    @pytest.mark.asyncio
    async def test_invalid_options(self, builder: SnapshotBuilder) -> None:
        with pytest.raises(ValidationError):
            await builder.build("u1", "products", {"limit": -5})

    @pytest.mark.asyncio
    async def test_unknown_domain(self, builder: SnapshotBuilder) -> None:
        with pytest.raises(ValidationError):
            await builder.build("u1", "orders")

    @pytest.mark.asyncio
    async def test_rebuild_replaces_snapshot(self, builder: SnapshotBuilder) -> None:
        await builder.build("u1", "products")
        await builder.build("u1", "products", {"limit": 1})

        snapshot = await builder.get_snapshot("u1", "products")
        assert len(snapshot["data"]) == 1


class TestCategorySnapshot:
    """Tests for the categories snapshot."""

    @pytest.mark.asyncio
    async def test_tree(self, builder: SnapshotBuilder) -> None:
        result = await builder.build("u1", "categories")
        snapshot = await builder.get_snapshot("u1", "categories")
        roots = snapshot["data"]

        assert result.count == 3
        assert [c["id"] for c in roots] == ["c-fashion", "c-home"]
        fashion = roots[0]
        assert [c["id"] for c in fashion["children"]] == ["c-dresses"]
        assert fashion["children"][0]["children"] == []
        assert fashion["product_count"] == 1
        assert fashion["children"][0]["product_count"] == 1
        assert snapshot["metadata"]["orphans"] == []

    @pytest.mark.asyncio
    async def test_flat_list_without_subcategories(self, builder: SnapshotBuilder) -> None:
        await builder.build(
            "u1", "categories", {"include_subcategories": False, "include_product_count": False}
        )
        data = (await builder.get_snapshot("u1", "categories"))["data"]

        assert [c["id"] for c in data] == ["c-dresses", "c-fashion", "c-home"]
        assert all("children" not in c and "product_count" not in c for c in data)

    @pytest.mark.asyncio
    async def test_orphans_and_cycles_left_out(
        self, builder: SnapshotBuilder, catalog: InMemoryCatalog, caplog
    ) -> None:
        catalog.add_category("c-lost", parent_id="c-missing")
        catalog.add_category("c-a", parent_id="c-b")
        catalog.add_category("c-b", parent_id="c-a")

        result = await builder.build("u1", "categories")
        snapshot = await builder.get_snapshot("u1", "categories")

        assert result.count == 3
        assert sorted(snapshot["metadata"]["orphans"]) == ["c-a", "c-b", "c-lost"]
        assert [c["id"] for c in snapshot["data"]] == ["c-fashion", "c-home"]
        assert "orphaned categories" in caplog.text


class TestProfileSnapshot:
    """Tests for the profile snapshot."""

    @pytest.mark.asyncio
    async def test_build_profile(
        self, builder: SnapshotBuilder, identities: InMemoryIdentityStore
    ) -> None:
        await identities.add_address(
            "u1",
            {"type": "home", "address_line": "12 Rue Carnot", "city": "Dakar", "country": "SN"},
        )
        await identities.add_to_wishlist("u1", "p1")

        result = await builder.build("u1", "profile")
        data = (await builder.get_snapshot("u1", "profile"))["data"]

        assert result.count == 1
        assert data["profile"]["full_name"] == "Aminata Diallo"
        assert data["profile"]["preferences"] == {"language": "fr"}
        assert data["recent_orders"] == [
            {
                "id": "o1",
                "order_number": "AM-1001",
                "total_amount": 30000.0,
                "currency": "XOF",
                "status": "shipped",
                "created_at": "2024-05-27T12:00:00+00:00",
            }
        ]
        assert data["addresses"][0]["city"] == "Dakar"
        assert data["wishlist"] == [
            {
                "id": "p1",
                "name": "Boubou",
                "price": 25000,
                "currency": "XOF",
                "image": "https://cdn.example.com/p1-1.jpg",
            }
        ]
        assert result.metadata["addresses_count"] == 1

    @pytest.mark.asyncio
    async def test_only_profile_carries_addresses(
        self, builder: SnapshotBuilder, identities: InMemoryIdentityStore
    ) -> None:
        await identities.add_address(
            "u1", {"address_line": "12 Rue Carnot", "city": "Dakar", "country": "SN"}
        )

        for domain in ("products", "categories", "stores"):
            await builder.build("u1", domain)
            snapshot = await builder.get_snapshot("u1", domain)
            assert "12 Rue Carnot" not in repr(snapshot)

    @pytest.mark.asyncio
    async def test_preferences_stored_as_json_text(
        self, builder: SnapshotBuilder, identities: InMemoryIdentityStore
    ) -> None:
        identities.users["u2"]["preferences"] = '{"currency": "XOF"}'

        await builder.build("u2", "profile")
        data = (await builder.get_snapshot("u2", "profile"))["data"]

        assert data["profile"]["preferences"] == {"currency": "XOF"}

    @pytest.mark.asyncio
    async def test_preferences_shaped_like_dates_survive(
        self, builder: SnapshotBuilder, identities: InMemoryIdentityStore, config: EdgeConfig
    ) -> None:
        preferences = {"__datetime__": "not-a-date", "reminder": {"__date__": "2024-01-01"}}
        outcomes = await SyncReconciler(identities, config=config).apply(
            "u1",
            [{"id": "c1", "type": "profile_update", "data": {"preferences": preferences}}],
        )
        assert outcomes[0].success

        await builder.build("u1", "profile")
        data = (await builder.get_snapshot("u1", "profile"))["data"]

        assert data["profile"]["preferences"] == preferences

    @pytest.mark.asyncio
    async def test_unknown_identity(self, builder: SnapshotBuilder) -> None:
        with pytest.raises(NotFoundError):
            await builder.build("ghost", "profile")


class TestStoreSnapshot:
    """Tests for the popular stores snapshot."""

    @pytest.mark.asyncio
    async def test_ranked_by_rating(self, builder: SnapshotBuilder) -> None:
        await builder.build("u1", "stores")
        data = (await builder.get_snapshot("u1", "stores"))["data"]

        assert [s["id"] for s in data] == ["s1", "s2"]
        assert data[0]["rating"] == 4.8

    @pytest.mark.asyncio
    async def test_description_truncated(
        self, builder: SnapshotBuilder, catalog: InMemoryCatalog
    ) -> None:
        catalog.stores["s1"]["description"] = "y" * 150

        await builder.build("u1", "stores")
        s1 = (await builder.get_snapshot("u1", "stores"))["data"][0]

        assert len(s1["description"]) == 100
        assert s1["description"].endswith("...")

    @pytest.mark.asyncio
    async def test_location_and_limit(self, builder: SnapshotBuilder) -> None:
        result = await builder.build("u1", "stores", {"location": "abidjan", "limit": 5})
        assert result.count == 1


class TestSnapshotCache:
    """Retrieval, expiry, clearing and audit."""

    @pytest.mark.asyncio
    async def test_missing_snapshot(self, builder: SnapshotBuilder) -> None:
        with pytest.raises(NotFoundError):
            await builder.get_snapshot("u1", "products")

    @pytest.mark.asyncio
    async def test_snapshot_expires_after_ttl(self, builder: SnapshotBuilder, clock) -> None:
        result = await builder.build("u1", "stores")
        assert result.metadata["expires_at"] == (clock() + timedelta(hours=24)).isoformat()

        clock.advance(hours=24)

        with pytest.raises(NotFoundError):
            await builder.get_snapshot("u1", "stores")

    @pytest.mark.asyncio
    async def test_snapshots_are_per_owner(self, builder: SnapshotBuilder) -> None:
        await builder.build("u1", "stores")
        with pytest.raises(NotFoundError):
            await builder.get_snapshot("u2", "stores")

    @pytest.mark.asyncio
    async def test_clear(self, builder: SnapshotBuilder, audit: MagicMock) -> None:
        await builder.build("u1", "products")
        await builder.build("u1", "profile")

        cleared = await builder.clear("u1")

        assert cleared == ["products", "profile"]
        with pytest.raises(NotFoundError):
            await builder.get_snapshot("u1", "products")
        event = audit.emit.call_args.args[0]
        assert event.action == "cleared"
        assert event.metadata == {"types_cleared": ["products", "profile"]}

    @pytest.mark.asyncio
    async def test_clear_selected_domains(self, builder: SnapshotBuilder) -> None:
        await builder.build("u1", "products")
        await builder.build("u1", "stores")

        assert await builder.clear("u1", ["stores", "categories"]) == ["stores"]
        assert await builder.get_snapshot("u1", "products")

    @pytest.mark.asyncio
    async def test_audit_events(self, builder: SnapshotBuilder, audit: MagicMock) -> None:
        result = await builder.build("u1", "stores")
        await builder.get_snapshot("u1", "stores")

        cached, accessed = [c.args[0] for c in audit.emit.call_args_list]
        assert (cached.owner_id, cached.data_type, cached.action) == ("u1", "stores", "cached")
        assert cached.metadata["size"] == result.size_bytes
        assert accessed.action == "accessed"

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_fail_build(
        self,
        catalog: InMemoryCatalog,
        identities: InMemoryIdentityStore,
        cache: CacheKeyStore,
        config: EdgeConfig,
    ) -> None:
        audit = MagicMock()
        audit.emit.side_effect = RuntimeError("audit down")
        builder = SnapshotBuilder(catalog, identities, cache, config=config, audit=audit)

        result = await builder.build("u1", "stores")

        assert result.count == 2
        assert await builder.get_snapshot("u1", "stores")


@pytest.fixture
def audit_log() -> InMemoryAuditStore:
    return InMemoryAuditStore()


@pytest.fixture
def stats_builder(
    catalog: InMemoryCatalog,
    identities: InMemoryIdentityStore,
    cache: CacheKeyStore,
    config: EdgeConfig,
    audit: MagicMock,
    audit_log: InMemoryAuditStore,
) -> SnapshotBuilder:
    return SnapshotBuilder(
        catalog, identities, cache, config=config, audit=audit, audit_log=audit_log
    )


async def record(audit: MagicMock, audit_log: InMemoryAuditStore) -> None:
    """Move emitted audit events into the log, as the audit channel would."""
    for call in audit.emit.call_args_list:
        await audit_log.append(call.args[0])
    audit.emit.reset_mock()


class TestCacheStats:
    """Tests for per-owner cache statistics."""

    @pytest.mark.asyncio
    async def test_activity_grouped_by_type_and_action(
        self,
        stats_builder: SnapshotBuilder,
        audit: MagicMock,
        audit_log: InMemoryAuditStore,
        clock,
    ) -> None:
        first = await stats_builder.build("u1", "products")
        clock.advance(minutes=1)
        second = await stats_builder.build("u1", "products", {"limit": 2})
        clock.advance(minutes=1)
        stores = await stats_builder.build("u1", "stores")
        clock.advance(minutes=1)
        await stats_builder.get_snapshot("u1", "products")
        await record(audit, audit_log)

        stats = await stats_builder.cache_stats("u1")

        assert stats.owner_id == "u1"
        assert stats.days == 7
        assert stats.since == clock() - timedelta(days=7)
        assert stats.activity == [
            ActivitySummary("products", "cached", 2, 2.5, first.size_bytes + second.size_bytes),
            ActivitySummary("products", "accessed", 1, None, 0),
            ActivitySummary("stores", "cached", 1, 2.0, stores.size_bytes),
        ]
        assert [(e.data_type, e.action) for e in stats.recent_activity] == [
            ("products", "accessed"),
            ("stores", "cached"),
            ("products", "cached"),
            ("products", "cached"),
        ]

    @pytest.mark.asyncio
    async def test_current_size_counts_live_snapshots(
        self, stats_builder: SnapshotBuilder, clock
    ) -> None:
        await stats_builder.build("u1", "products")
        products = await stats_builder.build("u1", "products", {"limit": 1})
        stores = await stats_builder.build("u1", "stores")
        await stats_builder.build("u2", "profile")

        stats = await stats_builder.cache_stats("u1")

        assert stats.current_size_bytes == products.size_bytes + stores.size_bytes
        assert stats.current_size == format_bytes(stats.current_size_bytes)

        clock.advance(hours=24)
        expired = await stats_builder.cache_stats("u1")
        assert expired.current_size_bytes == 0
        assert expired.current_size == format_bytes(0)

    @pytest.mark.asyncio
    async def test_window_limits_activity_not_recent(
        self, stats_builder: SnapshotBuilder, audit_log: InMemoryAuditStore, clock
    ) -> None:
        await audit_log.append(AuditEvent(
            owner_id="u1",
            data_type="profile",
            action="cached",
            metadata={"count": 1, "size": 300},
            created_at=clock() - timedelta(days=10),
        ))
        await audit_log.append(AuditEvent(
            owner_id="u2",
            data_type="profile",
            action="cached",
            created_at=clock(),
        ))

        week = await stats_builder.cache_stats("u1")
        month = await stats_builder.cache_stats("u1", days=30)

        assert week.activity == []
        assert [e.data_type for e in week.recent_activity] == ["profile"]
        assert month.activity == [ActivitySummary("profile", "cached", 1, 1.0, 300)]

    @pytest.mark.asyncio
    async def test_recent_activity_is_capped(
        self, stats_builder: SnapshotBuilder, audit_log: InMemoryAuditStore, clock
    ) -> None:
        for step in range(12):
            await audit_log.append(AuditEvent(
                owner_id="u1",
                data_type="stores",
                action="accessed",
                metadata={"step": step},
                created_at=clock() + timedelta(seconds=step),
            ))

        stats = await stats_builder.cache_stats("u1")

        assert len(stats.recent_activity) == 10
        assert stats.recent_activity[0].metadata["step"] == 11
        assert stats.activity[0].count == 12

    @pytest.mark.asyncio
    async def test_without_audit_log(self, builder: SnapshotBuilder) -> None:
        result = await builder.build("u1", "stores")

        stats = await builder.cache_stats("u1")

        assert stats.activity == []
        assert stats.recent_activity == []
        assert stats.current_size_bytes == result.size_bytes

    @pytest.mark.asyncio
    @pytest.mark.parametrize("days", [0, -3, True, 2.5, "7"])
    async def test_invalid_days(self, stats_builder: SnapshotBuilder, days) -> None:
        with pytest.raises(ValidationError):
            await stats_builder.cache_stats("u1", days=days)
