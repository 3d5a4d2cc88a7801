"""Domain entities for mobiledge."""

from mobiledge.core.entities.audit import ActivitySummary, AuditEvent, CacheStats
from mobiledge.core.entities.cache_entry import CacheEntry
from mobiledge.core.entities.cache_key import SnapshotKey
from mobiledge.core.entities.change import (
    AddressAdd,
    CartUpdate,
    ChangePayload,
    ChangeRecord,
    ChangeType,
    ProfileUpdate,
    SyncOutcome,
    WishlistAdd,
    WishlistRemove,
)
from mobiledge.core.entities.edge_config import EdgeConfig
from mobiledge.core.entities.link import (
    ClickEvent,
    LinkAnalytics,
    LinkCreation,
    LinkOptions,
    LinkTarget,
    OrderTarget,
    Platform,
    ProductTarget,
    PromotionTarget,
    RedirectDecision,
    ReferralTarget,
    ShortLink,
    StoreTarget,
    TargetType,
    UtmParams,
    target_from_dict,
    target_to_dict,
)
from mobiledge.core.entities.snapshot import (
    CategorySnapshotOptions,
    DomainType,
    PriceRange,
    ProductSnapshotOptions,
    SnapshotResult,
    StoreSnapshotOptions,
)

__all__ = [
    "AuditEvent",
    "ActivitySummary",
    "CacheStats",
    "CacheEntry",
    "SnapshotKey",
    "EdgeConfig",
    # Snapshots
    "DomainType",
    "PriceRange",
    "ProductSnapshotOptions",
    "CategorySnapshotOptions",
    "StoreSnapshotOptions",
    "SnapshotResult",
    # Sync
    "ChangeType",
    "ChangeRecord",
    "ChangePayload",
    "WishlistAdd",
    "WishlistRemove",
    "CartUpdate",
    "ProfileUpdate",
    "AddressAdd",
    "SyncOutcome",
    # Links
    "TargetType",
    "LinkTarget",
    "ProductTarget",
    "StoreTarget",
    "OrderTarget",
    "PromotionTarget",
    "ReferralTarget",
    "UtmParams",
    "LinkOptions",
    "LinkCreation",
    "ShortLink",
    "Platform",
    "ClickEvent",
    "RedirectDecision",
    "LinkAnalytics",
    "target_from_dict",
    "target_to_dict",
]
