"""Redis cache backend implementation."""

import math
from datetime import timedelta

import redis.asyncio as redis


class RedisCacheBackend:
    """Redis cache backend for multi-process deployments.

    Snapshots and sync receipts become visible to every worker that
    shares the Redis instance. set_if_absent maps to ``SET NX`` so the
    insert is atomic on the server.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        key_prefix: str = "mobiledge",
        default_ttl: int | None = 300,
        client: redis.Redis | None = None,
    ) -> None:
        """Initialize the Redis cache backend.

        Args:
            redis_url: Redis connection URL.
            key_prefix: Prefix for all cache keys.
            default_ttl: Default TTL in seconds.
            client: Existing client to use instead of connecting to redis_url.
        """
        self._redis: redis.Redis = client or redis.from_url(redis_url)  # type: ignore
        self._key_prefix = key_prefix
        self._default_ttl = default_ttl

    def _seconds(self, ttl: timedelta | None) -> int | None:
        if ttl is None:
            return self._default_ttl
        # Redis expiries are whole seconds and must be positive
        return max(1, math.ceil(ttl.total_seconds()))

    async def get(self, key: str) -> bytes | None:
        """Retrieve cached value by key.

        Args:
            key: The cache key to retrieve.

        Returns:
            The cached value as bytes, or None if not found or expired.
        """
        return await self._redis.get(self._prefixed_key(key))

    async def set(
        self,
        key: str,
        value: bytes,
        ttl: timedelta | None = None,
    ) -> None:
        """Store value with optional TTL.

        Args:
            key: The cache key.
            value: The value to store as bytes.
            ttl: Optional time-to-live. If None, uses default.
        """
        prefixed_key = self._prefixed_key(key)
        seconds = self._seconds(ttl)

        if seconds is not None:
            await self._redis.setex(prefixed_key, seconds, value)
        else:
            await self._redis.set(prefixed_key, value)

    async def set_if_absent(
        self,
        key: str,
        value: bytes,
        ttl: timedelta | None = None,
    ) -> bool:
        """Store value only if the key does not exist (``SET NX``).

        Returns:
            True if stored, False if the key already existed.
        """
        result = await self._redis.set(
            self._prefixed_key(key), value, ex=self._seconds(ttl), nx=True
        )
        return bool(result)

    async def delete(self, key: str) -> bool:
        """Delete cached value.

        Args:
            key: The cache key to delete.

        Returns:
            True if the key existed and was deleted, False otherwise.
        """
        result = await self._redis.delete(self._prefixed_key(key))
        return result > 0

    def _prefixed_key(self, key: str) -> str:
        if key.startswith(f"{self._key_prefix}:"):
            return key
        return f"{self._key_prefix}:{key}"

    async def close(self) -> None:
        """Close the Redis connection."""
        await self._redis.aclose()

    async def __aenter__(self) -> "RedisCacheBackend":
        return self

    async def __aexit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        await self.close()
