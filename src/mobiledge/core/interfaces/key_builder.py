"""Key builder interface."""

from typing import Protocol

from mobiledge.core.entities.snapshot import DomainType


class IKeyBuilder(Protocol):
    """Contract for building snapshot cache keys.

    Key builders must map each (owner, domain) pair to exactly one
    deterministic key, so a rebuild replaces the previous snapshot.
    """

    def build(self, owner_id: str, domain: DomainType) -> str:
        """Build the cache key of an owner's snapshot.

        Args:
            owner_id: Identity owning the snapshot.
            domain: Snapshot domain type.

        Returns:
            The cache key string.
        """
        ...

    def build_receipt(self, owner_id: str, change_id: str) -> str:
        """Build the key recording that a change id was applied."""
        ...
