"""mobiledge - Data layer between a commerce backend and its mobile apps.

Offline snapshots of catalog and profile data, reconciliation of
changes queued offline, typed short links with platform-aware
redirects, and click analytics, over pluggable cache and link stores.

Example:
    from mobiledge import (
        EdgeConfig,
        InMemoryCacheBackend,
        InMemoryCatalog,
        InMemoryClickStore,
        InMemoryIdentityStore,
        InMemoryShortLinkStore,
        MobileEdgeService,
    )

    catalog = InMemoryCatalog()
    catalog.add_store("s1", name="Dakar Style", rating=4.8)
    catalog.add_product("p1", store_id="s1", name="Boubou", price=25000)
    identities = InMemoryIdentityStore(catalog)
    identities.add_user("u1", full_name="Aminata Diallo")

    edge = MobileEdgeService(
        backend=InMemoryCacheBackend(),
        catalog=catalog,
        identities=identities,
        identity_writer=identities,
        links=InMemoryShortLinkStore(),
        clicks=InMemoryClickStore(),
        config=EdgeConfig.from_env(),
    )

    async with edge:
        await edge.refresh_snapshot("u1", "products", {"limit": 50})
        outcomes = await edge.sync("u1", [
            {"id": "c1", "type": "wishlist_add", "data": {"product_id": "p1"}},
        ])
        link = await edge.create_link({"type": "product", "product_id": "p1"})
        decision = await edge.resolve(link.code, request_user_agent, request_ip)

Redis-backed snapshots (``pip install mobiledge[redis]``):
    from mobiledge_redis import RedisCacheBackend

    backend = RedisCacheBackend("redis://localhost:6379", key_prefix="edge")
"""

from mobiledge.core.entities import (
    ActivitySummary,
    AuditEvent,
    CacheStats,
    ChangeRecord,
    ChangeType,
    ClickEvent,
    DomainType,
    EdgeConfig,
    LinkAnalytics,
    LinkCreation,
    LinkOptions,
    OrderTarget,
    Platform,
    ProductTarget,
    PromotionTarget,
    RedirectDecision,
    ReferralTarget,
    ShortLink,
    SnapshotResult,
    StoreTarget,
    SyncOutcome,
)
from mobiledge.core.exceptions import (
    CodeSpaceExhaustedError,
    ErrorKind,
    ExpiredResourceError,
    ForbiddenError,
    MobileEdgeError,
    NotFoundError,
    ValidationError,
)
from mobiledge.core.interfaces import (
    IAuditStore,
    ICacheBackend,
    ICatalogReader,
    IClickStore,
    IIdentityReader,
    IIdentityWriter,
    IShortLinkStore,
)
from mobiledge.core.services import (
    CacheKeyStore,
    ClickAnalytics,
    MobileEdgeService,
    RedirectResolver,
    ShortLinkRegistry,
    SnapshotBuilder,
    SyncReconciler,
)
from mobiledge.infrastructure import (
    CompressedSerializer,
    DefaultKeyBuilder,
    EventChannel,
    InMemoryAuditStore,
    InMemoryCacheBackend,
    InMemoryCatalog,
    InMemoryClickStore,
    InMemoryIdentityStore,
    InMemoryShortLinkStore,
    JsonSerializer,
    SQLiteAuditStore,
    SQLiteLinkStore,
)
from mobiledge.wellknown import apple_app_site_association, asset_links

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Configuration
    "EdgeConfig",
    # Errors
    "ErrorKind",
    "MobileEdgeError",
    "ValidationError",
    "NotFoundError",
    "ExpiredResourceError",
    "ForbiddenError",
    "CodeSpaceExhaustedError",
    # Snapshots
    "DomainType",
    "SnapshotResult",
    "SnapshotBuilder",
    "AuditEvent",
    "ActivitySummary",
    "CacheStats",
    # Sync
    "ChangeType",
    "ChangeRecord",
    "SyncOutcome",
    "SyncReconciler",
    # Short links
    "ProductTarget",
    "StoreTarget",
    "OrderTarget",
    "PromotionTarget",
    "ReferralTarget",
    "LinkOptions",
    "LinkCreation",
    "ShortLink",
    "ShortLinkRegistry",
    # Redirects and analytics
    "Platform",
    "ClickEvent",
    "RedirectDecision",
    "RedirectResolver",
    "LinkAnalytics",
    "ClickAnalytics",
    # Services
    "CacheKeyStore",
    "MobileEdgeService",
    # Interfaces
    "ICacheBackend",
    "ICatalogReader",
    "IIdentityReader",
    "IIdentityWriter",
    "IShortLinkStore",
    "IClickStore",
    "IAuditStore",
    # Infrastructure implementations
    "InMemoryCacheBackend",
    "DefaultKeyBuilder",
    "JsonSerializer",
    "CompressedSerializer",
    "EventChannel",
    "InMemoryShortLinkStore",
    "InMemoryClickStore",
    "InMemoryAuditStore",
    "SQLiteLinkStore",
    "SQLiteAuditStore",
    "InMemoryCatalog",
    "InMemoryIdentityStore",
    # Well-known documents
    "apple_app_site_association",
    "asset_links",
]
