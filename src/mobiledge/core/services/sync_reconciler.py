"""Sync reconciler - applies offline change batches to canonical state."""

import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timezone
from typing import Any

from mobiledge.core.entities.audit import AuditEvent
from mobiledge.core.entities.change import (
    AddressAdd,
    CartUpdate,
    ChangeRecord,
    ChangeType,
    ProfileUpdate,
    SyncOutcome,
    WishlistAdd,
    WishlistRemove,
)
from mobiledge.core.entities.edge_config import EdgeConfig
from mobiledge.core.exceptions import ErrorKind, MobileEdgeError, NotFoundError, ValidationError
from mobiledge.core.interfaces.collaborators import IIdentityWriter
from mobiledge.core.interfaces.key_builder import IKeyBuilder
from mobiledge.core.services.cache_key_store import CacheKeyStore
from mobiledge.infrastructure.events import EventChannel
from mobiledge.infrastructure.key_builders.default import DefaultKeyBuilder

logger = logging.getLogger(__name__)

Handler = Callable[[str, Any], Awaitable[None]]


class SyncReconciler:
    """Applies client-queued changes one record at a time.

    Changes run sequentially in input order. A failing change produces
    a failed outcome and never stops or rolls back the others. Every
    handler is safe to run twice for the same change: wishlist adds are
    upserts, removes of absent items succeed, cart updates set absolute
    quantities. When a receipt store is configured, change ids that
    already succeeded are acknowledged without being applied again,
    which also covers address_add.
    """

    def __init__(
        self,
        writer: IIdentityWriter,
        config: EdgeConfig | None = None,
        receipts: CacheKeyStore | None = None,
        key_builder: IKeyBuilder | None = None,
        audit: EventChannel[AuditEvent] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the reconciler.

        Args:
            writer: Canonical-state writer the changes are applied through.
            config: Edge configuration. Uses defaults if not provided.
            receipts: Optional store recording applied change ids.
            key_builder: Builds receipt keys. Prefix from config by default.
            audit: Optional channel receiving one summary event per batch.
            clock: Stamps audit events. UTC now by default.
        """
        self._writer = writer
        self._config = config or EdgeConfig()
        self._receipts = receipts
        self._key_builder = key_builder or DefaultKeyBuilder(prefix=self._config.key_prefix)
        self._audit = audit
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._handlers: dict[ChangeType, Handler] = {
            ChangeType.WISHLIST_ADD: self._wishlist_add,
            ChangeType.WISHLIST_REMOVE: self._wishlist_remove,
            ChangeType.CART_UPDATE: self._cart_update,
            ChangeType.PROFILE_UPDATE: self._profile_update,
            ChangeType.ADDRESS_ADD: self._address_add,
        }

    async def apply(self, owner_id: str, changes: Sequence[Any]) -> list[SyncOutcome]:
        """Apply a batch of changes for one owner.

        Args:
            owner_id: Identity the changes belong to.
            changes: ChangeRecord instances or their wire mappings
                (``{"id", "type", "data", "timestamp"}``).

        Returns:
            One outcome per change, in input order, echoing the change ids.

        Raises:
            ValidationError: If owner_id is empty or the batch is not a
                non-empty list.
        """
        if not owner_id:
            raise ValidationError("owner_id is required")
        if isinstance(changes, (str, bytes)) or not isinstance(changes, Sequence):
            raise ValidationError("changes must be a list")
        if not changes:
            raise ValidationError("At least one change is required")

        outcomes = []
        for raw in changes:
            change = raw if isinstance(raw, ChangeRecord) else ChangeRecord.from_mapping(raw)
            outcomes.append(await self._apply_one(owner_id, change))

        successful = sum(1 for o in outcomes if o.success)
        if self._audit is not None:
            self._audit.emit(AuditEvent(
                owner_id=owner_id,
                data_type="sync",
                action="completed",
                metadata={
                    "changes_count": len(outcomes),
                    "successful": successful,
                    "failed": len(outcomes) - successful,
                },
                created_at=self._clock(),
            ))
        return outcomes

    async def _apply_one(self, owner_id: str, change: ChangeRecord) -> SyncOutcome:
        try:
            payload = change.parse_payload()
            receipt_key = self._key_builder.build_receipt(owner_id, str(change.id))
            if self._receipts is not None and await self._receipts.get(receipt_key) is not None:
                return SyncOutcome.ok(change, replayed=True)

            await self._handlers[payload.change_type](owner_id, payload)

            if self._receipts is not None:
                await self._record_receipt(receipt_key, change)
            return SyncOutcome.ok(change)
        except MobileEdgeError as e:
            return SyncOutcome.failed(change, e.kind, e.message)
        except Exception as e:
            logger.exception("Sync of change %s (%s) failed for %s", change.id, change.type, owner_id)
            return SyncOutcome.failed(change, ErrorKind.INTERNAL, str(e) or type(e).__name__)

    async def _record_receipt(self, key: str, change: ChangeRecord) -> None:
        try:
            await self._receipts.put_if_absent(  # type: ignore[union-attr]
                key,
                {"type": change.type, "timestamp": change.timestamp},
                self._config.receipt_ttl,
            )
        except Exception:
            logger.exception("Failed to record sync receipt %s", key)

    async def _wishlist_add(self, owner_id: str, payload: WishlistAdd) -> None:
        if not await self._writer.product_exists(payload.product_id):
            raise NotFoundError(f"Unknown product: {payload.product_id}")
        await self._writer.add_to_wishlist(owner_id, payload.product_id)

    async def _wishlist_remove(self, owner_id: str, payload: WishlistRemove) -> None:
        await self._writer.remove_from_wishlist(owner_id, payload.product_id)

    async def _cart_update(self, owner_id: str, payload: CartUpdate) -> None:
        if payload.quantity > 0 and not await self._writer.product_exists(payload.product_id):
            raise NotFoundError(f"Unknown product: {payload.product_id}")
        await self._writer.set_cart_quantity(owner_id, payload.product_id, payload.quantity)

    async def _profile_update(self, owner_id: str, payload: ProfileUpdate) -> None:
        if payload.fields:
            await self._writer.update_profile(owner_id, dict(payload.fields))

    async def _address_add(self, owner_id: str, payload: AddressAdd) -> None:
        await self._writer.add_address(owner_id, payload.to_dict())
