"""Short link and click storage interfaces."""

from datetime import datetime
from typing import Protocol

from mobiledge.core.entities.link import ClickEvent, ShortLink


class IShortLinkStore(Protocol):
    """Contract for short link persistence.

    Codes are unique at the storage layer: insert_if_absent is the
    only way to create a link and must be a single atomic
    compare-and-set.
    """

    async def insert_if_absent(self, link: ShortLink) -> bool:
        """Persist a link unless its code is already taken.

        Returns:
            True if stored, False on code collision.
        """
        ...

    async def get(self, code: str) -> ShortLink | None:
        """Retrieve a link by code."""
        ...

    async def get_by_id(self, link_id: str) -> ShortLink | None:
        """Retrieve a link by id."""
        ...

    async def increment_clicks(self, link_id: str) -> int:
        """Atomically add one click and return the new count."""
        ...

    async def get_referral_code(self, owner_id: str) -> str | None:
        """Return the referral code already assigned to an identity."""
        ...

    async def claim_referral_code(self, owner_id: str, code: str) -> str | None:
        """Assign a referral code unless the identity already has one.

        Returns:
            The identity's referral code, which is the existing one if
            another caller claimed first, or None when the code belongs
            to a different identity.
        """
        ...


class IClickStore(Protocol):
    """Contract for append-only click event storage."""

    async def append(self, event: ClickEvent) -> None:
        """Append a click event."""
        ...

    async def list_since(self, link_id: str, since: datetime) -> list[ClickEvent]:
        """Return a link's click events at or after a time."""
        ...
