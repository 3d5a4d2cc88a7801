"""Cache backend interface."""

from datetime import timedelta
from typing import Protocol


class ICacheBackend(Protocol):
    """Contract for key/value storage backends.

    All backends must implement this protocol to be used with
    CacheKeyStore. Methods are async to support both in-memory
    and distributed implementations. A single set() must be
    atomic: readers see either the old or the new value.
    """

    async def get(self, key: str) -> bytes | None:
        """Retrieve stored value by key.

        Args:
            key: The key to retrieve.

        Returns:
            The stored value as bytes, or None if not found or expired.
        """
        ...

    async def set(
        self,
        key: str,
        value: bytes,
        ttl: timedelta | None = None,
    ) -> None:
        """Store value with optional TTL, replacing any previous value.

        Args:
            key: The key.
            value: The value to store as bytes.
            ttl: Optional time-to-live. If None, uses backend default.
        """
        ...

    async def set_if_absent(
        self,
        key: str,
        value: bytes,
        ttl: timedelta | None = None,
    ) -> bool:
        """Store value only if the key does not exist, atomically.

        Args:
            key: The key.
            value: The value to store as bytes.
            ttl: Optional time-to-live.

        Returns:
            True if the value was stored, False if the key already existed.
        """
        ...

    async def delete(self, key: str) -> bool:
        """Delete stored value.

        Args:
            key: The key to delete.

        Returns:
            True if the key existed and was deleted, False otherwise.
        """
        ...
