"""Mobile edge service - single entry point for the HTTP layer."""

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from mobiledge.core.entities.audit import AuditEvent, CacheStats
from mobiledge.core.entities.edge_config import EdgeConfig
from mobiledge.core.entities.link import (
    ClickEvent,
    LinkAnalytics,
    LinkCreation,
    LinkOptions,
    LinkTarget,
    RedirectDecision,
    target_from_dict,
)
from mobiledge.core.entities.change import SyncOutcome
from mobiledge.core.entities.snapshot import DomainType, SnapshotResult
from mobiledge.core.interfaces.audit_store import IAuditStore
from mobiledge.core.interfaces.cache_backend import ICacheBackend
from mobiledge.core.interfaces.collaborators import (
    ICatalogReader,
    IIdentityReader,
    IIdentityWriter,
)
from mobiledge.core.interfaces.link_store import IClickStore, IShortLinkStore
from mobiledge.core.interfaces.serializer import ISerializer
from mobiledge.core.services.cache_key_store import CacheKeyStore
from mobiledge.core.services.click_analytics import ClickAnalytics
from mobiledge.core.services.redirect_resolver import CountryLookup, RedirectResolver, click_writer
from mobiledge.core.services.short_link_registry import ShortLinkRegistry
from mobiledge.core.services.snapshot_builder import SnapshotBuilder
from mobiledge.core.services.sync_reconciler import SyncReconciler
from mobiledge.infrastructure.events import EventChannel
from mobiledge.infrastructure.key_builders.default import DefaultKeyBuilder
from mobiledge.infrastructure.stores.memory import InMemoryAuditStore

logger = logging.getLogger(__name__)

AuditWriter = Callable[[AuditEvent], Any]


async def _log_audit(event: AuditEvent) -> None:
    logger.info(
        "audit owner=%s type=%s action=%s metadata=%s",
        event.owner_id, event.data_type, event.action, event.metadata,
    )


def audit_log_writer(store: IAuditStore, forward: AuditWriter = _log_audit) -> AuditWriter:
    """Build the background writer for the audit channel.

    The writer appends the event to the audit store, then hands it
    to ``forward``.
    """

    async def write(event: AuditEvent) -> None:
        await store.append(event)
        await forward(event)

    return write


class MobileEdgeService:
    """Wires the edge components together behind one object.

    The service owns two background channels: one for audit events and
    one for click events. Call start() once an event loop is running
    and aclose() on shutdown, or use it as an async context manager.

    Example:
        catalog = InMemoryCatalog()
        identities = InMemoryIdentityStore(catalog)
        links = InMemoryShortLinkStore()

        async with MobileEdgeService(
            backend=InMemoryCacheBackend(),
            catalog=catalog,
            identities=identities,
            identity_writer=identities,
            links=links,
            clicks=InMemoryClickStore(),
        ) as edge:
            await edge.refresh_snapshot("u1", "products", {"limit": 20})
            created = await edge.create_link({"type": "product", "product_id": "p1"})
            decision = await edge.resolve(created.code, user_agent, ip)
    """

    def __init__(
        self,
        backend: ICacheBackend,
        catalog: ICatalogReader,
        identities: IIdentityReader,
        identity_writer: IIdentityWriter,
        links: IShortLinkStore,
        clicks: IClickStore,
        config: EdgeConfig | None = None,
        serializer: ISerializer | None = None,
        audit_writer: AuditWriter | None = None,
        audit_store: IAuditStore | None = None,
        country_lookup: CountryLookup | None = None,
        code_factory: Callable[[int], str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            backend: Cache backend for snapshots and sync receipts.
            catalog: Read-only catalog collaborator.
            identities: Read-only identity collaborator.
            identity_writer: Writer for sync mutations.
            links: Short link persistence.
            clicks: Click event persistence.
            config: Edge configuration. Uses defaults if not provided.
            serializer: Cache payload serializer. Compressed JSON by default.
            audit_writer: Coroutine function receiving each audit event
                after it is stored. Events are logged at info level by default.
            audit_store: Audit event log read by cache_stats. In memory by default.
            country_lookup: Optional ip -> country code lookup for clicks.
            code_factory: Short code generator, for tests.
            clock: Returns the current aware datetime. UTC now by default.
        """
        self._config = config or EdgeConfig()
        clock = clock or (lambda: datetime.now(timezone.utc))
        key_builder = DefaultKeyBuilder(prefix=self._config.key_prefix)

        self.audit_store = audit_store or InMemoryAuditStore()
        self._audit: EventChannel[AuditEvent] = EventChannel(
            audit_log_writer(self.audit_store, audit_writer or _log_audit),
            maxsize=self._config.event_queue_size,
            name="audit",
        )
        self._clicks: EventChannel[ClickEvent] = EventChannel(
            click_writer(links, clicks),
            maxsize=self._config.event_queue_size,
            name="clicks",
        )

        self.cache = CacheKeyStore(backend, serializer=serializer, clock=clock)
        self.snapshots = SnapshotBuilder(
            catalog,
            identities,
            self.cache,
            config=self._config,
            key_builder=key_builder,
            audit=self._audit,
            audit_log=self.audit_store,
        )
        self.reconciler = SyncReconciler(
            identity_writer,
            config=self._config,
            receipts=self.cache,
            key_builder=key_builder,
            audit=self._audit,
            clock=clock,
        )
        registry_kwargs: dict[str, Any] = {"config": self._config, "clock": clock}
        if code_factory is not None:
            registry_kwargs["code_factory"] = code_factory
        self.registry = ShortLinkRegistry(links, catalog, identities, **registry_kwargs)
        self.resolver = RedirectResolver(
            links,
            self._clicks,
            config=self._config,
            country_lookup=country_lookup,
            clock=clock,
        )
        self.click_analytics = ClickAnalytics(clicks, config=self._config, clock=clock)

    @property
    def config(self) -> EdgeConfig:
        return self._config

    @property
    def audit_channel(self) -> EventChannel[AuditEvent]:
        return self._audit

    @property
    def click_channel(self) -> EventChannel[ClickEvent]:
        return self._clicks

    def start(self) -> None:
        """Start the background audit and click writers."""
        self._audit.start()
        self._clicks.start()

    async def flush(self) -> None:
        """Wait until every queued audit and click event has been written."""
        await self._audit.join()
        await self._clicks.join()

    async def aclose(self) -> None:
        """Drain and stop the background writers."""
        await self._clicks.aclose()
        await self._audit.aclose()

    async def refresh_snapshot(
        self,
        owner_id: str,
        domain: DomainType | str,
        options: Mapping[str, Any] | None = None,
    ) -> SnapshotResult:
        """Build and cache one snapshot for an owner."""
        return await self.snapshots.build(owner_id, domain, options)

    async def get_snapshot(self, owner_id: str, domain: DomainType | str) -> dict[str, Any]:
        """Read a cached snapshot; raises NotFoundError on a miss."""
        return await self.snapshots.get_snapshot(owner_id, domain)

    async def clear_snapshots(
        self, owner_id: str, domains: Iterable[DomainType | str] | None = None
    ) -> list[str]:
        return await self.snapshots.clear(owner_id, domains)

    async def cache_stats(self, owner_id: str, days: int = 7) -> CacheStats:
        """Summarize an owner's cache activity; call flush() first for exact counts."""
        return await self.snapshots.cache_stats(owner_id, days)

    async def sync(self, owner_id: str, changes: Sequence[Any]) -> list[SyncOutcome]:
        """Apply an offline change batch; one outcome per change."""
        return await self.reconciler.apply(owner_id, changes)

    async def create_link(
        self,
        target: LinkTarget | Mapping[str, Any],
        options: LinkOptions | Mapping[str, Any] | None = None,
    ) -> LinkCreation:
        """Create a short link.

        Args:
            target: Typed target, or its tagged mapping
                (``{"type": "product", "product_id": ...}``).
            options: LinkOptions, or a mapping of its fields.
        """
        if isinstance(target, Mapping):
            target = target_from_dict(target)
        if not isinstance(options, LinkOptions):
            options = LinkOptions.from_mapping(options)
        return await self.registry.create(target, options)

    async def resolve(
        self,
        code: str,
        user_agent: str | None,
        ip: str | None,
        country: str | None = None,
    ) -> RedirectDecision:
        """Resolve a short code; never raises."""
        return await self.resolver.resolve(code, user_agent, ip, country)

    async def analytics(self, link_id: str, window_days: int = 30) -> LinkAnalytics:
        return await self.click_analytics.aggregate(link_id, window_days)

    async def __aenter__(self) -> "MobileEdgeService":
        self.start()
        return self

    async def __aexit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        await self.aclose()
