"""SQLite short link, click and audit stores."""

import json
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from mobiledge.core.entities.audit import AuditEvent
from mobiledge.core.entities.link import (
    ClickEvent,
    Platform,
    ShortLink,
    UtmParams,
    target_from_dict,
    target_to_dict,
)
from mobiledge.infrastructure.serializers.json import JsonSerializer

SCHEMA = """
CREATE TABLE IF NOT EXISTS short_links (
    id TEXT PRIMARY KEY,
    code TEXT NOT NULL UNIQUE,
    target_type TEXT NOT NULL,
    target_data TEXT NOT NULL,
    utm_source TEXT,
    utm_medium TEXT,
    utm_campaign TEXT,
    native_uri TEXT NOT NULL,
    short_url TEXT NOT NULL,
    web_url TEXT NOT NULL,
    created_at TEXT NOT NULL,
    expires_at TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    click_count INTEGER NOT NULL DEFAULT 0,
    creator_id TEXT
);

CREATE TABLE IF NOT EXISTS link_clicks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    link_id TEXT NOT NULL REFERENCES short_links(id),
    code TEXT NOT NULL,
    clicked_at TEXT NOT NULL,
    user_agent TEXT,
    ip_address TEXT,
    platform TEXT NOT NULL,
    country TEXT
);

CREATE INDEX IF NOT EXISTS idx_link_clicks_link_time ON link_clicks (link_id, clicked_at);

CREATE TABLE IF NOT EXISTS referral_codes (
    owner_id TEXT PRIMARY KEY,
    code TEXT NOT NULL UNIQUE
);
"""


def _to_text(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_text(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


AUDIT_SCHEMA = """
CREATE TABLE IF NOT EXISTS audit_events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id TEXT NOT NULL,
    data_type TEXT NOT NULL,
    action TEXT NOT NULL,
    metadata TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_audit_events_owner_time ON audit_events (owner_id, created_at);
"""

_metadata_serializer = JsonSerializer()


class _SQLiteStore:
    """Connection handling shared by the SQLite stores."""

    schema = ""

    def __init__(self, path: str | Path = ":memory:") -> None:
        """Initialize the store.

        Args:
            path: Database file, or ":memory:" for a private database.
        """
        self._path = path
        self._db: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open the connection and create tables."""
        if self._db is not None:
            return
        if self._path != ":memory:":
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(self.schema)
        await self._db.commit()

    async def close(self) -> None:
        """Close the connection."""
        if self._db is not None:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError(f"{type(self).__name__} is not connected")
        return self._db

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        await self.close()


class SQLiteLinkStore(_SQLiteStore):
    """Short link, referral code and click store on SQLite.

    Code uniqueness is enforced by a UNIQUE constraint and claimed
    with INSERT OR IGNORE, so the existence check and the write are
    one statement. Implements both IShortLinkStore and IClickStore.

    Example:
        async with SQLiteLinkStore("links.db") as store:
            registry = ShortLinkRegistry(store, catalog, identities, config)
    """

    schema = SCHEMA

    async def insert_if_absent(self, link: ShortLink) -> bool:
        cursor = await self.db.execute(
            """INSERT OR IGNORE INTO short_links
               (id, code, target_type, target_data, utm_source, utm_medium,
                utm_campaign, native_uri, short_url, web_url, created_at,
                expires_at, is_active, click_count, creator_id)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                link.id,
                link.code,
                link.target.kind.value,
                json.dumps(target_to_dict(link.target)),
                link.utm.source,
                link.utm.medium,
                link.utm.campaign,
                link.native_uri,
                link.short_url,
                link.web_url,
                _to_text(link.created_at),
                _to_text(link.expires_at),
                int(link.is_active),
                link.click_count,
                link.creator_id,
            ),
        )
        await self.db.commit()
        return cursor.rowcount == 1

    async def get(self, code: str) -> ShortLink | None:
        cursor = await self.db.execute("SELECT * FROM short_links WHERE code = ?", (code,))
        row = await cursor.fetchone()
        return self._row_to_link(row) if row is not None else None

    async def get_by_id(self, link_id: str) -> ShortLink | None:
        cursor = await self.db.execute("SELECT * FROM short_links WHERE id = ?", (link_id,))
        row = await cursor.fetchone()
        return self._row_to_link(row) if row is not None else None

    async def increment_clicks(self, link_id: str) -> int:
        await self.db.execute(
            "UPDATE short_links SET click_count = click_count + 1 WHERE id = ?", (link_id,)
        )
        await self.db.commit()
        cursor = await self.db.execute(
            "SELECT click_count FROM short_links WHERE id = ?", (link_id,)
        )
        row = await cursor.fetchone()
        return int(row["click_count"]) if row is not None else 0

    async def get_referral_code(self, owner_id: str) -> str | None:
        cursor = await self.db.execute(
            "SELECT code FROM referral_codes WHERE owner_id = ?", (owner_id,)
        )
        row = await cursor.fetchone()
        return row["code"] if row is not None else None

    async def claim_referral_code(self, owner_id: str, code: str) -> str | None:
        await self.db.execute(
            "INSERT OR IGNORE INTO referral_codes (owner_id, code) VALUES (?, ?)",
            (owner_id, code),
        )
        await self.db.commit()
        return await self.get_referral_code(owner_id)

    async def append(self, event: ClickEvent) -> None:
        await self.db.execute(
            """INSERT INTO link_clicks
               (link_id, code, clicked_at, user_agent, ip_address, platform, country)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                event.link_id,
                event.code,
                _to_text(event.clicked_at),
                event.user_agent,
                event.ip,
                event.platform.value,
                event.country,
            ),
        )
        await self.db.commit()

    async def list_since(self, link_id: str, since: datetime) -> list[ClickEvent]:
        cursor = await self.db.execute(
            "SELECT * FROM link_clicks WHERE link_id = ? AND clicked_at >= ? ORDER BY clicked_at",
            (link_id, _to_text(since)),
        )
        rows = await cursor.fetchall()
        return [
            ClickEvent(
                link_id=row["link_id"],
                code=row["code"],
                clicked_at=datetime.fromisoformat(row["clicked_at"]),
                user_agent=row["user_agent"],
                ip=row["ip_address"],
                platform=Platform(row["platform"]),
                country=row["country"],
            )
            for row in rows
        ]

    @staticmethod
    def _row_to_link(row: aiosqlite.Row) -> ShortLink:
        return ShortLink(
            id=row["id"],
            code=row["code"],
            target=target_from_dict(json.loads(row["target_data"])),
            utm=UtmParams(
                source=row["utm_source"],
                medium=row["utm_medium"],
                campaign=row["utm_campaign"],
            ),
            native_uri=row["native_uri"],
            short_url=row["short_url"],
            web_url=row["web_url"],
            created_at=datetime.fromisoformat(row["created_at"]),
            expires_at=_from_text(row["expires_at"]),
            is_active=bool(row["is_active"]),
            click_count=row["click_count"],
            creator_id=row["creator_id"],
        )


class SQLiteAuditStore(_SQLiteStore):
    """Append-only audit event log on SQLite. Implements IAuditStore.

    Metadata is stored as JSON text; times as UTC ISO strings, which
    sort in time order.

    Example:
        async with SQLiteAuditStore("audit.db") as audit_store:
            edge = MobileEdgeService(..., audit_store=audit_store)
    """

    schema = AUDIT_SCHEMA

    async def append(self, event: AuditEvent) -> None:
        await self.db.execute(
            """INSERT INTO audit_events (owner_id, data_type, action, metadata, created_at)
               VALUES (?, ?, ?, ?, ?)""",
            (
                event.owner_id,
                event.data_type,
                event.action,
                _metadata_serializer.serialize(event.metadata).decode("utf-8"),
                _to_text(event.created_at),
            ),
        )
        await self.db.commit()

    async def list_since(self, owner_id: str, since: datetime) -> list[AuditEvent]:
        cursor = await self.db.execute(
            """SELECT * FROM audit_events WHERE owner_id = ? AND created_at >= ?
               ORDER BY created_at, id""",
            (owner_id, _to_text(since)),
        )
        return [self._row_to_event(row) for row in await cursor.fetchall()]

    async def recent(self, owner_id: str, limit: int) -> list[AuditEvent]:
        cursor = await self.db.execute(
            """SELECT * FROM audit_events WHERE owner_id = ?
               ORDER BY created_at DESC, id DESC LIMIT ?""",
            (owner_id, limit),
        )
        return [self._row_to_event(row) for row in await cursor.fetchall()]

    @staticmethod
    def _row_to_event(row: aiosqlite.Row) -> AuditEvent:
        return AuditEvent(
            owner_id=row["owner_id"],
            data_type=row["data_type"],
            action=row["action"],
            metadata=json.loads(row["metadata"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
