"""Snapshot cache key value object."""

from dataclasses import dataclass

from mobiledge.core.entities.snapshot import DomainType


@dataclass(frozen=True)
class SnapshotKey:
    """Immutable cache key value object.

    One key per (owner, domain) pair, so rebuilding a snapshot
    overwrites the previous one.
    """

    prefix: str
    domain: DomainType
    owner_id: str

    def __str__(self) -> str:
        """Return the full cache key string.

        Returns:
            The complete cache key as a string.
        """
        return ":".join([self.prefix, self.domain.value, self.owner_id])
