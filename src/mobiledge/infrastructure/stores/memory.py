"""In-memory short link, click and audit stores."""

from collections import defaultdict
from datetime import datetime

from mobiledge.core.entities.audit import AuditEvent
from mobiledge.core.entities.link import ClickEvent, ShortLink


class InMemoryShortLinkStore:
    """Short link store backed by dictionaries.

    Suitable for single-process deployments and tests. Check and
    insert happen without an await in between, so insert_if_absent
    is atomic under asyncio.
    """

    def __init__(self) -> None:
        self._by_code: dict[str, ShortLink] = {}
        self._code_by_id: dict[str, str] = {}
        self._referrals: dict[str, str] = {}
        self._referral_owners: dict[str, str] = {}

    async def insert_if_absent(self, link: ShortLink) -> bool:
        if link.code in self._by_code:
            return False
        self._by_code[link.code] = link
        self._code_by_id[link.id] = link.code
        return True

    async def get(self, code: str) -> ShortLink | None:
        return self._by_code.get(code)

    async def get_by_id(self, link_id: str) -> ShortLink | None:
        code = self._code_by_id.get(link_id)
        return self._by_code.get(code) if code is not None else None

    async def increment_clicks(self, link_id: str) -> int:
        code = self._code_by_id.get(link_id)
        if code is None:
            return 0
        link = self._by_code[code].with_clicks(self._by_code[code].click_count + 1)
        self._by_code[code] = link
        return link.click_count

    async def get_referral_code(self, owner_id: str) -> str | None:
        return self._referrals.get(owner_id)

    async def claim_referral_code(self, owner_id: str, code: str) -> str | None:
        if owner_id in self._referrals:
            return self._referrals[owner_id]
        if code in self._referral_owners:
            return None
        self._referrals[owner_id] = code
        self._referral_owners[code] = owner_id
        return code

    def __len__(self) -> int:
        return len(self._by_code)


class InMemoryClickStore:
    """Append-only click log kept in memory."""

    def __init__(self) -> None:
        self._events: dict[str, list[ClickEvent]] = defaultdict(list)

    async def append(self, event: ClickEvent) -> None:
        self._events[event.link_id].append(event)

    async def list_since(self, link_id: str, since: datetime) -> list[ClickEvent]:
        return [e for e in self._events.get(link_id, []) if e.clicked_at >= since]


class InMemoryAuditStore:
    """Append-only audit log kept in memory."""

    def __init__(self) -> None:
        self._events: dict[str, list[AuditEvent]] = defaultdict(list)

    async def append(self, event: AuditEvent) -> None:
        self._events[event.owner_id].append(event)

    async def list_since(self, owner_id: str, since: datetime) -> list[AuditEvent]:
        return [e for e in self._events.get(owner_id, []) if e.created_at >= since]

    async def recent(self, owner_id: str, limit: int) -> list[AuditEvent]:
        events = sorted(
            reversed(self._events.get(owner_id, [])), key=lambda e: e.created_at, reverse=True
        )
        return events[:limit]
