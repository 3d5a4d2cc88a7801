"""Domain services for mobiledge."""

from mobiledge.core.services.cache_key_store import CacheKeyStore
from mobiledge.core.services.click_analytics import ClickAnalytics
from mobiledge.core.services.edge_service import MobileEdgeService
from mobiledge.core.services.redirect_resolver import RedirectResolver, click_writer
from mobiledge.core.services.short_link_registry import (
    ShortLinkRegistry,
    generate_code,
    generate_referral_code,
)
from mobiledge.core.services.snapshot_builder import SnapshotBuilder
from mobiledge.core.services.sync_reconciler import SyncReconciler

__all__ = [
    "CacheKeyStore",
    "SnapshotBuilder",
    "SyncReconciler",
    "ShortLinkRegistry",
    "RedirectResolver",
    "ClickAnalytics",
    "MobileEdgeService",
    "click_writer",
    "generate_code",
    "generate_referral_code",
]
