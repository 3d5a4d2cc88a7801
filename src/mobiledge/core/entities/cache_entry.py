"""Cache entry entity."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    """Immutable record describing a stored cache value.

    Holds the metadata of a write (not the value itself): when it
    was written, for how long it lives and how many compressed bytes
    it occupies in the backend.
    """

    key: str
    size_bytes: int
    created_at: datetime
    ttl: timedelta | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def expires_at(self) -> datetime | None:
        """Calculate expiration time.

        Returns:
            The datetime when this entry expires, or None if no TTL.
        """
        if self.ttl is None:
            return None
        return self.created_at + self.ttl

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if entry has expired.

        Args:
            now: Reference time. Defaults to the current UTC time.

        Returns:
            True if the entry has expired, False otherwise.
        """
        if self.expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) >= self.expires_at

    @classmethod
    def create(
        cls,
        key: str,
        size_bytes: int,
        ttl: timedelta | None = None,
        metadata: dict[str, Any] | None = None,
        created_at: datetime | None = None,
    ) -> "CacheEntry":
        """Factory method to create a new cache entry.

        Args:
            key: The cache key.
            size_bytes: Size of the stored (compressed) payload.
            ttl: Optional time-to-live.
            metadata: Optional custom metadata.
            created_at: Write time. Defaults to now (UTC).

        Returns:
            A new CacheEntry instance.
        """
        return cls(
            key=key,
            size_bytes=size_bytes,
            created_at=created_at or datetime.now(timezone.utc),
            ttl=ttl,
            metadata=metadata or {},
        )
