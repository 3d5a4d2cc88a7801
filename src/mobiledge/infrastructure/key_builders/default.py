"""Default key builder implementation."""

from mobiledge.core.entities.cache_key import SnapshotKey
from mobiledge.core.entities.snapshot import DomainType


class DefaultKeyBuilder:
    """Default key builder for snapshot and receipt keys.

    Snapshot keys look like ``offline:products:<owner>``; receipt keys
    like ``offline:sync:<owner>:<change id>``.
    """

    def __init__(self, prefix: str = "offline") -> None:
        """Initialize the key builder.

        Args:
            prefix: Prefix for all keys.
        """
        if not prefix or ":" in prefix:
            raise ValueError("prefix must be non-empty and contain no ':'")
        self._prefix = prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    def build(self, owner_id: str, domain: DomainType) -> str:
        """Build the cache key of an owner's snapshot."""
        return str(SnapshotKey(prefix=self._prefix, domain=domain, owner_id=owner_id))

    def build_receipt(self, owner_id: str, change_id: str) -> str:
        """Build the key recording that a change id was applied."""
        return ":".join([self._prefix, "sync", owner_id, change_id])
