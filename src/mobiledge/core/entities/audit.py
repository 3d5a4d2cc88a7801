"""Audit event entity."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class AuditEvent:
    """Record of a cache or sync activity for one owner.

    Actions used: "cached", "accessed", "cleared" and "completed"
    (for sync batches, with data_type "sync").
    """

    owner_id: str
    data_type: str
    action: str
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class ActivitySummary:
    """Aggregate of one owner's audit events for a (data_type, action) pair."""

    data_type: str
    action: str
    count: int
    avg_items: float | None
    total_size: int


@dataclass(frozen=True)
class CacheStats:
    """Cache usage of one owner over a window of days.

    ``activity`` is ordered by event count, highest first.
    ``recent_activity`` holds the latest events regardless of window,
    newest first.
    """

    owner_id: str
    days: int
    since: datetime
    current_size_bytes: int
    current_size: str
    activity: list[ActivitySummary] = field(default_factory=list)
    recent_activity: list[AuditEvent] = field(default_factory=list)
