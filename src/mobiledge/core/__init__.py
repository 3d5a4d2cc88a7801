"""Core domain layer for mobiledge."""

from mobiledge.core.entities import CacheEntry, EdgeConfig, SnapshotKey
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
    ICacheBackend,
    IKeyBuilder,
    ISerializer,
)
from mobiledge.core.services import CacheKeyStore, MobileEdgeService

__all__ = [
    # Entities
    "CacheEntry",
    "EdgeConfig",
    "SnapshotKey",
    # Errors
    "ErrorKind",
    "MobileEdgeError",
    "ValidationError",
    "NotFoundError",
    "ExpiredResourceError",
    "ForbiddenError",
    "CodeSpaceExhaustedError",
    # Interfaces
    "ICacheBackend",
    "IKeyBuilder",
    "ISerializer",
    # Services
    "CacheKeyStore",
    "MobileEdgeService",
]
