"""Audit event storage interface."""

from datetime import datetime
from typing import Protocol

from mobiledge.core.entities.audit import AuditEvent


class IAuditStore(Protocol):
    """Contract for append-only audit event storage."""

    async def append(self, event: AuditEvent) -> None:
        """Append an audit event."""
        ...

    async def list_since(self, owner_id: str, since: datetime) -> list[AuditEvent]:
        """Return an owner's events at or after a time, oldest first."""
        ...

    async def recent(self, owner_id: str, limit: int) -> list[AuditEvent]:
        """Return an owner's latest events, newest first."""
        ...
