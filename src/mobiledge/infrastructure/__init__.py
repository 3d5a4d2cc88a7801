"""Infrastructure layer implementations for mobiledge."""

from mobiledge.infrastructure.backends import InMemoryCacheBackend
from mobiledge.infrastructure.collaborators import InMemoryCatalog, InMemoryIdentityStore
from mobiledge.infrastructure.events import EventChannel
from mobiledge.infrastructure.key_builders import DefaultKeyBuilder
from mobiledge.infrastructure.serializers import CompressedSerializer, JsonSerializer
from mobiledge.infrastructure.stores import (
    InMemoryAuditStore,
    InMemoryClickStore,
    InMemoryShortLinkStore,
    SQLiteAuditStore,
    SQLiteLinkStore,
)

__all__ = [
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
]
