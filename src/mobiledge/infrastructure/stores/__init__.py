"""Short link, click and audit stores."""

from mobiledge.infrastructure.stores.memory import (
    InMemoryAuditStore,
    InMemoryClickStore,
    InMemoryShortLinkStore,
)
from mobiledge.infrastructure.stores.sqlite import SQLiteAuditStore, SQLiteLinkStore

__all__ = [
    "InMemoryShortLinkStore",
    "InMemoryClickStore",
    "InMemoryAuditStore",
    "SQLiteLinkStore",
    "SQLiteAuditStore",
]
