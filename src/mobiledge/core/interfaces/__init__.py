"""Core interfaces (Protocol classes) for mobiledge."""

from mobiledge.core.interfaces.audit_store import IAuditStore
from mobiledge.core.interfaces.cache_backend import ICacheBackend
from mobiledge.core.interfaces.collaborators import (
    CatalogQuery,
    ICatalogReader,
    IdentityRecord,
    IIdentityReader,
    IIdentityWriter,
)
from mobiledge.core.interfaces.key_builder import IKeyBuilder
from mobiledge.core.interfaces.link_store import IClickStore, IShortLinkStore
from mobiledge.core.interfaces.serializer import ISerializer

__all__ = [
    "ICacheBackend",
    "IKeyBuilder",
    "ISerializer",
    "ICatalogReader",
    "IIdentityReader",
    "IIdentityWriter",
    "IShortLinkStore",
    "IClickStore",
    "IAuditStore",
    "CatalogQuery",
    "IdentityRecord",
]
