"""In-memory cache backend implementation."""

import math
import time
from collections.abc import Callable
from datetime import timedelta

from cachetools import TLRUCache  # type: ignore[import-untyped]


class InMemoryCacheBackend:
    """In-memory cache backend using LRU with per-item TTL.

    Suitable for single-process deployments and tests. Uses
    cachetools' TLRUCache, so every item carries its own expiry.
    Operations never await between a check and a write, which makes
    set_if_absent atomic under asyncio.
    """

    def __init__(
        self,
        maxsize: int = 1000,
        default_ttl: float | None = 300.0,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the in-memory cache backend.

        Args:
            maxsize: Maximum number of items in the cache.
            default_ttl: Default TTL in seconds, None for no expiry.
            timer: Clock used for expiry, monotonic seconds by default.
        """
        self._maxsize = maxsize
        self._default_ttl = default_ttl
        self._cache: TLRUCache[str, tuple[bytes, float]] = TLRUCache(
            maxsize=maxsize,
            ttu=self._time_to_use,
            timer=timer,
        )

    @staticmethod
    def _time_to_use(_key: str, value: tuple[bytes, float], now: float) -> float:
        return now + value[1]

    def _seconds(self, ttl: timedelta | None) -> float:
        if ttl is not None:
            return ttl.total_seconds()
        if self._default_ttl is not None:
            return self._default_ttl
        return math.inf

    async def get(self, key: str) -> bytes | None:
        """Retrieve cached value by key.

        Args:
            key: The cache key to retrieve.

        Returns:
            The cached value as bytes, or None if not found or expired.
        """
        item = self._cache.get(key)
        return item[0] if item is not None else None

    async def set(
        self,
        key: str,
        value: bytes,
        ttl: timedelta | None = None,
    ) -> None:
        """Store value with optional TTL, replacing any previous value.

        Args:
            key: The cache key.
            value: The value to store as bytes.
            ttl: Optional time-to-live. If None, uses default.
        """
        self._cache[key] = (value, self._seconds(ttl))

    async def set_if_absent(
        self,
        key: str,
        value: bytes,
        ttl: timedelta | None = None,
    ) -> bool:
        """Store value only if the key is not already live.

        Returns:
            True if stored, False if the key already existed.
        """
        if key in self._cache:
            return False
        self._cache[key] = (value, self._seconds(ttl))
        return True

    async def delete(self, key: str) -> bool:
        """Delete cached value.

        Returns:
            True if the key existed and was deleted, False otherwise.
        """
        try:
            del self._cache[key]
            return True
        except KeyError:
            return False

    def __len__(self) -> int:
        """Return the number of items in the cache."""
        return len(self._cache)

    @property
    def maxsize(self) -> int:
        """Return the maximum size of the cache."""
        return self._maxsize
