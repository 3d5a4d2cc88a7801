"""Cache key store - TTL-bound, compressed key/value storage."""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from mobiledge.core.entities.cache_entry import CacheEntry
from mobiledge.core.interfaces.cache_backend import ICacheBackend
from mobiledge.core.interfaces.serializer import ISerializer
from mobiledge.infrastructure.serializers.compressed import CompressedSerializer
from mobiledge.infrastructure.serializers.json import SerializationError

logger = logging.getLogger(__name__)


def _parse_expiry(envelope: Any) -> datetime | None:
    """Read the expiry of a decoded envelope.

    Raises:
        SerializationError: If the envelope is malformed.
    """
    if not isinstance(envelope, dict) or "value" not in envelope:
        raise SerializationError("Cache envelope is malformed")
    expires_at = envelope.get("expires_at")
    if expires_at is None:
        return None
    try:
        return datetime.fromisoformat(expires_at)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Invalid envelope expiry: {expires_at!r}") from e


class CacheKeyStore:
    """Domain service wrapping a key/value backend with TTL and compression.

    Each value is stored as one compressed envelope holding the payload
    and its expiry time, written with a single backend call, so readers
    see either the previous value or the new one. Expiry is checked on
    every read against the store's own clock: an expired envelope is
    evicted and reported as a miss even if the backend still holds it.
    """

    def __init__(
        self,
        backend: ICacheBackend,
        serializer: ISerializer | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            backend: The backend to use for storage.
            serializer: Serializer for envelopes. Compressed JSON by default.
            clock: Returns the current aware datetime. UTC now by default.
        """
        self._backend = backend
        self._serializer = serializer or CompressedSerializer()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        # Statistics
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @property
    def stats(self) -> dict[str, int]:
        """Get cache statistics.

        Returns:
            Dictionary with hits, misses, expiry evictions and total reads.
        """
        return {
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
            "total": self._hits + self._misses,
        }

    def now(self) -> datetime:
        return self._clock()

    def _envelope(
        self, key: str, value: Any, ttl: timedelta | None
    ) -> tuple[CacheEntry, bytes]:
        created_at = self._clock()
        expires_at = created_at + ttl if ttl is not None else None
        data = self._serializer.serialize({
            "expires_at": expires_at.isoformat() if expires_at is not None else None,
            "value": value,
        })
        entry = CacheEntry.create(key=key, size_bytes=len(data), ttl=ttl, created_at=created_at)
        return entry, data

    async def put(
        self,
        key: str,
        value: Any,
        ttl: timedelta | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> CacheEntry:
        """Store a value, replacing whatever the key held.

        Args:
            key: The cache key.
            value: A JSON-serializable value.
            ttl: Optional time-to-live.
            metadata: Optional metadata attached to the returned entry.

        Returns:
            The CacheEntry describing the write, with its compressed size.

        Raises:
            SerializationError: If the value cannot be serialized.
        """
        entry, data = self._envelope(key, value, ttl)
        await self._backend.set(key, data, ttl)
        logger.debug("Stored %s (%d bytes, ttl=%s)", key, entry.size_bytes, ttl)
        if metadata:
            entry.metadata.update(metadata)
        return entry

    async def put_if_absent(self, key: str, value: Any, ttl: timedelta | None = None) -> bool:
        """Store a value only if the key is not live, atomically.

        Returns:
            True if stored, False if the key already existed.
        """
        _, data = self._envelope(key, value, ttl)
        return await self._backend.set_if_absent(key, data, ttl)

    async def get(self, key: str) -> Any | None:
        """Retrieve a live value.

        Args:
            key: The cache key.

        Returns:
            A freshly decoded copy of the value, or None on miss or expiry.
        """
        data = await self._backend.get(key)
        if data is None:
            self._misses += 1
            return None

        try:
            envelope = self._serializer.deserialize(data)
            expires_at = _parse_expiry(envelope)
        except SerializationError:
            logger.warning("Evicting unreadable cache entry %s", key, exc_info=True)
            await self._backend.delete(key)
            self._misses += 1
            return None

        if expires_at is not None and self._clock() >= expires_at:
            await self._backend.delete(key)
            self._evictions += 1
            self._misses += 1
            return None

        self._hits += 1
        return envelope["value"]

    async def size_of(self, key: str) -> int:
        """Return the stored byte size of a live value, 0 if there is none.

        Reads do not touch hit/miss statistics or evict anything.
        """
        data = await self._backend.get(key)
        if data is None:
            return 0
        try:
            expires_at = _parse_expiry(self._serializer.deserialize(data))
        except SerializationError:
            return 0
        if expires_at is not None and self._clock() >= expires_at:
            return 0
        return len(data)

    async def delete(self, *keys: str) -> int:
        """Delete keys.

        Returns:
            Number of keys that existed and were deleted.
        """
        count = 0
        for key in keys:
            if await self._backend.delete(key):
                count += 1
        return count
