"""Snapshot builder - reduced offline copies of catalog and profile data."""

import json
import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta
from typing import Any

from mobiledge.core.entities.audit import ActivitySummary, AuditEvent, CacheStats
from mobiledge.core.entities.edge_config import EdgeConfig
from mobiledge.core.entities.snapshot import (
    CategorySnapshotOptions,
    DomainType,
    ProductSnapshotOptions,
    SnapshotResult,
    StoreSnapshotOptions,
)
from mobiledge.core.exceptions import NotFoundError, ValidationError
from mobiledge.core.interfaces.audit_store import IAuditStore
from mobiledge.core.interfaces.collaborators import (
    CatalogQuery,
    ICatalogReader,
    IIdentityReader,
)
from mobiledge.core.interfaces.key_builder import IKeyBuilder
from mobiledge.core.services.cache_key_store import CacheKeyStore
from mobiledge.infrastructure.events import EventChannel
from mobiledge.infrastructure.key_builders.default import DefaultKeyBuilder
from mobiledge.utils.text import format_bytes, split_images, truncate_text

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 10


def _as_float(value: Any) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def _as_int(value: Any) -> int:
    try:
        return int(value) if value is not None else 0
    except (TypeError, ValueError):
        return 0


def _iso(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _summarize(data_type: str, action: str, events: list[AuditEvent]) -> ActivitySummary:
    counts = [
        e.metadata["count"] for e in events
        if isinstance(e.metadata.get("count"), int) and not isinstance(e.metadata["count"], bool)
    ]
    return ActivitySummary(
        data_type=data_type,
        action=action,
        count=len(events),
        avg_items=sum(counts) / len(counts) if counts else None,
        total_size=sum(_as_int(e.metadata.get("size")) for e in events),
    )


class SnapshotBuilder:
    """Builds the four offline snapshots and writes them to the cache.

    Every snapshot is stored as ``{"metadata": {...}, "data": ...}``
    under one key per (owner, domain), replacing the previous build.
    Projection is deterministic: long descriptions are cut to a fixed
    character budget and image lists are capped.

    Only the profile snapshot carries addresses.
    """

    def __init__(
        self,
        catalog: ICatalogReader,
        identities: IIdentityReader,
        cache: CacheKeyStore,
        config: EdgeConfig | None = None,
        key_builder: IKeyBuilder | None = None,
        audit: EventChannel[AuditEvent] | None = None,
        audit_log: IAuditStore | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
            catalog: Source of products, stores and categories.
            identities: Source of profiles, orders, addresses and wishlists.
            cache: Store the snapshots are written to.
            config: Edge configuration. Uses defaults if not provided.
            key_builder: Snapshot key builder. Prefix from config by default.
            audit: Optional channel receiving audit events.
            audit_log: Optional store of past audit events, read by cache_stats.
        """
        self._catalog = catalog
        self._identities = identities
        self._cache = cache
        self._config = config or EdgeConfig()
        self._key_builder = key_builder or DefaultKeyBuilder(prefix=self._config.key_prefix)
        self._audit = audit
        self._audit_log = audit_log

    async def build(
        self,
        owner_id: str,
        domain: DomainType | str,
        options: Mapping[str, Any] | None = None,
    ) -> SnapshotResult:
        """Build (or rebuild) one snapshot by domain name.

        Raises:
            ValidationError: On unknown domain or invalid options.
            NotFoundError: When building a profile for an unknown identity.
        """
        domain = DomainType.parse(domain)
        if domain is DomainType.PRODUCTS:
            return await self.build_products(
                owner_id,
                ProductSnapshotOptions.from_mapping(options, self._config.product_limit),
            )
        if domain is DomainType.CATEGORIES:
            return await self.build_categories(owner_id, CategorySnapshotOptions.from_mapping(options))
        if domain is DomainType.STORES:
            return await self.build_stores(
                owner_id,
                StoreSnapshotOptions.from_mapping(options, self._config.store_limit),
            )
        return await self.build_profile(owner_id)

    async def build_products(
        self, owner_id: str, options: ProductSnapshotOptions | None = None
    ) -> SnapshotResult:
        """Build the products snapshot."""
        options = options or ProductSnapshotOptions(limit=self._config.product_limit)
        price_range = options.price_range
        records = await self._catalog.query(
            CatalogQuery(
                kind="products",
                category_slugs=options.categories,
                min_price=price_range.min if price_range else None,
                max_price=price_range.max if price_range else None,
                location=options.location,
                limit=options.limit,
            )
        )

        cached_at = self._cache.now().isoformat()
        products = [
            self._project_product(record, options, cached_at)
            for record in records[: options.limit]
        ]
        return await self._write(owner_id, DomainType.PRODUCTS, products, options.to_dict())

    def _project_product(
        self,
        record: Mapping[str, Any],
        options: ProductSnapshotOptions,
        cached_at: str,
    ) -> dict[str, Any]:
        product: dict[str, Any] = {
            "id": record.get("id"),
            "name": record.get("name"),
            "price": record.get("price"),
            "currency": record.get("currency"),
            "stock_quantity": record.get("stock_quantity"),
            "rating": _as_float(record.get("rating")),
            "reviews_count": _as_int(record.get("reviews_count")),
            "store": {
                "id": record.get("store_id"),
                "name": record.get("store_name"),
                "logo": record.get("store_logo"),
                "location": record.get("store_location"),
            },
            "category": {
                "name": record.get("category_name"),
                "slug": record.get("category_slug"),
            },
            "cached_at": cached_at,
        }

        if options.include_details:
            product["description"] = truncate_text(
                record.get("description"), self._config.product_description_budget
            )

        images = split_images(record.get("images"))
        if options.include_images and images:
            product["images"] = {
                "thumbnail": images[0],
                "gallery": images[: self._config.gallery_size],
            }

        return product

    async def build_categories(
        self, owner_id: str, options: CategorySnapshotOptions | None = None
    ) -> SnapshotResult:
        """Build the categories snapshot.

        With subcategories, the flat list is assembled into a tree in
        two passes over an id index. Categories whose parent chain does
        not reach a root (unknown parent, or a cycle) are left out of
        the tree and listed in ``metadata["orphans"]``.
        """
        options = options or CategorySnapshotOptions()
        records = await self._catalog.query(CatalogQuery(kind="categories"))
        records = sorted(records, key=lambda c: (_as_int(c.get("sort_order")), c.get("name") or ""))

        # Pass 1: index every category by id
        index: dict[str, dict[str, Any]] = {}
        parents: dict[str, str | None] = {}
        for record in records:
            index[record["id"]] = {
                "id": record["id"],
                "name": record.get("name"),
                "slug": record.get("slug"),
                "description": record.get("description"),
                "image": record.get("image"),
                "parent_id": record.get("parent_id") or None,
                "sort_order": record.get("sort_order"),
            }
            parents[record["id"]] = record.get("parent_id") or None

        orphans: list[str] = []
        if options.include_subcategories:
            placed = [cid for cid in index if self._reaches_root(cid, parents)]
            placed_ids = set(placed)
            orphans = [cid for cid in index if cid not in placed_ids]
            if orphans:
                logger.warning(
                    "Dropping %d orphaned categories from snapshot of %s: %s",
                    len(orphans), owner_id, ", ".join(orphans),
                )

            # Pass 2: attach children under their parents, collect roots
            for cid in placed:
                index[cid]["children"] = []
            data: list[dict[str, Any]] = []
            for cid in placed:
                parent_id = parents[cid]
                if parent_id is None:
                    data.append(index[cid])
                else:
                    index[parent_id]["children"].append(index[cid])
        else:
            placed = list(index)
            data = [index[cid] for cid in placed]

        if options.include_product_count:
            for cid in placed:
                index[cid]["product_count"] = await self._catalog.count_products(cid)

        return await self._write(
            owner_id,
            DomainType.CATEGORIES,
            data,
            options.to_dict(),
            count=len(placed),
            extra={"orphans": orphans},
        )

    @staticmethod
    def _reaches_root(category_id: str, parents: Mapping[str, str | None]) -> bool:
        seen = set()
        current: str | None = category_id
        while current is not None:
            if current in seen or current not in parents:
                return False
            seen.add(current)
            current = parents[current]
        return True

    async def build_profile(self, owner_id: str) -> SnapshotResult:
        """Build the profile snapshot.

        Raises:
            NotFoundError: If the identity does not exist.
        """
        identity = await self._identities.get(owner_id)
        if identity is None:
            raise NotFoundError(f"Unknown identity: {owner_id}")

        profile = identity.profile
        preferences = profile.get("preferences")
        if isinstance(preferences, str):
            try:
                preferences = json.loads(preferences)
            except ValueError:
                logger.warning("Ignoring unreadable preferences of %s", owner_id)
                preferences = {}

        orders = sorted(
            identity.orders,
            key=lambda o: _iso(o.get("created_at")) or "",
            reverse=True,
        )[: self._config.recent_orders_limit]

        data = {
            "profile": {
                "id": profile.get("id", owner_id),
                "full_name": profile.get("full_name"),
                "email": profile.get("email"),
                "avatar": profile.get("avatar"),
                "location": profile.get("location"),
                "phone": profile.get("phone"),
                "preferences": preferences or {},
            },
            "recent_orders": [
                {
                    "id": order.get("id"),
                    "order_number": order.get("order_number"),
                    "total_amount": _as_float(order.get("total_amount")),
                    "currency": order.get("currency"),
                    "status": order.get("status"),
                    "created_at": _iso(order.get("created_at")),
                }
                for order in orders
            ],
            "addresses": [
                {
                    key: address.get(key)
                    for key in (
                        "id", "type", "address_line", "city",
                        "postal_code", "country", "is_default",
                    )
                }
                for address in identity.addresses
                if address.get("is_active", True)
            ],
            "wishlist": [
                {
                    "id": item.get("id"),
                    "name": item.get("name"),
                    "price": item.get("price"),
                    "currency": item.get("currency"),
                    "image": next(iter(split_images(item.get("images"))), None),
                }
                for item in identity.wishlist[: self._config.wishlist_preview_limit]
            ],
        }

        return await self._write(
            owner_id,
            DomainType.PROFILE,
            data,
            {},
            count=1,
            extra={
                "orders_count": len(data["recent_orders"]),
                "addresses_count": len(data["addresses"]),
                "wishlist_count": len(data["wishlist"]),
            },
        )

    async def build_stores(
        self, owner_id: str, options: StoreSnapshotOptions | None = None
    ) -> SnapshotResult:
        """Build the popular stores snapshot, ranked by rating then reviews."""
        options = options or StoreSnapshotOptions(limit=self._config.store_limit)
        records = await self._catalog.query(CatalogQuery(kind="stores", location=options.location))
        ranked = sorted(
            records,
            key=lambda s: (_as_float(s.get("rating")), _as_int(s.get("reviews_count"))),
            reverse=True,
        )[: options.limit]

        stores = [
            {
                "id": store.get("id"),
                "name": store.get("name"),
                "description": truncate_text(
                    store.get("description"), self._config.store_description_budget
                ),
                "logo": store.get("logo"),
                "banner": store.get("banner"),
                "location": store.get("location"),
                "rating": _as_float(store.get("rating")),
                "reviews_count": _as_int(store.get("reviews_count")),
                "products_count": _as_int(store.get("products_count")),
                "category": store.get("category"),
            }
            for store in ranked
        ]
        return await self._write(owner_id, DomainType.STORES, stores, options.to_dict())

    async def get_snapshot(self, owner_id: str, domain: DomainType | str) -> dict[str, Any]:
        """Fetch a cached snapshot.

        Raises:
            ValidationError: On unknown domain.
            NotFoundError: When nothing live is cached for the owner.
        """
        domain = DomainType.parse(domain)
        snapshot = await self._cache.get(self._key_builder.build(owner_id, domain))
        if snapshot is None:
            raise NotFoundError(f"No cached {domain.value} snapshot for {owner_id}")
        self._emit(AuditEvent(
            owner_id=owner_id,
            data_type=domain.value,
            action="accessed",
            created_at=self._cache.now(),
        ))
        return snapshot

    async def clear(
        self, owner_id: str, domains: Iterable[DomainType | str] | None = None
    ) -> list[str]:
        """Evict an owner's snapshots.

        Args:
            owner_id: Owner whose snapshots are removed.
            domains: Domains to clear. All four by default.

        Returns:
            The domains that had a snapshot and were removed.
        """
        targets = [DomainType.parse(d) for d in domains] if domains is not None else list(DomainType)
        cleared = []
        for domain in targets:
            if await self._cache.delete(self._key_builder.build(owner_id, domain)):
                cleared.append(domain.value)
        self._emit(AuditEvent(
            owner_id=owner_id,
            data_type="cache",
            action="cleared",
            metadata={"types_cleared": cleared},
            created_at=self._cache.now(),
        ))
        return cleared

    async def cache_stats(self, owner_id: str, days: int = 7) -> CacheStats:
        """Summarize an owner's cache activity over the last ``days`` days.

        Activity is grouped by (data_type, action) with the event count,
        the average item count and the total bytes written. The current
        size is the stored size of the owner's live snapshots. Without
        an audit log only the current size is reported.

        Raises:
            ValidationError: If days is not a positive integer.
        """
        if isinstance(days, bool) or not isinstance(days, int) or days < 1:
            raise ValidationError("days must be a positive integer")

        since = self._cache.now() - timedelta(days=days)
        current = 0
        for domain in DomainType:
            current += await self._cache.size_of(self._key_builder.build(owner_id, domain))

        activity: list[ActivitySummary] = []
        recent: list[AuditEvent] = []
        if self._audit_log is not None:
            groups: dict[tuple[str, str], list[AuditEvent]] = defaultdict(list)
            for event in await self._audit_log.list_since(owner_id, since):
                groups[(event.data_type, event.action)].append(event)
            summaries = [_summarize(*pair, events) for pair, events in groups.items()]
            activity = sorted(summaries, key=lambda s: (-s.count, s.data_type, s.action))
            recent = await self._audit_log.recent(owner_id, RECENT_ACTIVITY_LIMIT)

        return CacheStats(
            owner_id=owner_id,
            days=days,
            since=since,
            current_size_bytes=current,
            current_size=format_bytes(current),
            activity=activity,
            recent_activity=recent,
        )

    async def _write(
        self,
        owner_id: str,
        domain: DomainType,
        data: Any,
        filters: dict[str, Any],
        count: int | None = None,
        extra: dict[str, Any] | None = None,
    ) -> SnapshotResult:
        ttl = self._config.ttl_for(domain)
        cached_at = self._cache.now()
        item_count = len(data) if count is None else count
        metadata: dict[str, Any] = {
            "owner_id": owner_id,
            "type": domain.value,
            "count": item_count,
            "filters": filters,
            "cached_at": cached_at.isoformat(),
            "expires_at": (cached_at + ttl).isoformat(),
            "version": self._config.snapshot_version,
            **(extra or {}),
        }

        entry = await self._cache.put(
            self._key_builder.build(owner_id, domain),
            {"metadata": metadata, "data": data},
            ttl,
        )

        self._emit(AuditEvent(
            owner_id=owner_id,
            data_type=domain.value,
            action="cached",
            metadata={"count": item_count, "size": entry.size_bytes, "filters": filters},
            created_at=cached_at,
        ))

        return SnapshotResult(
            domain=domain,
            owner_id=owner_id,
            count=item_count,
            size_bytes=entry.size_bytes,
            size=format_bytes(entry.size_bytes),
            metadata=metadata,
        )

    def _emit(self, event: AuditEvent) -> None:
        if self._audit is None:
            return
        try:
            self._audit.emit(event)
        except Exception:
            logger.exception("Failed to record audit event for %s", event.owner_id)
