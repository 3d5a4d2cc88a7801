"""Redirect resolver - turns a short code into a platform-aware redirect."""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from urllib.parse import quote

from mobiledge.core.entities.edge_config import EdgeConfig
from mobiledge.core.entities.link import ClickEvent, Platform, RedirectDecision, ShortLink
from mobiledge.core.interfaces.link_store import IClickStore, IShortLinkStore
from mobiledge.infrastructure.events import EventChannel

logger = logging.getLogger(__name__)

CountryLookup = Callable[[str], "str | None"]


class RedirectResolver:
    """Resolves short codes to redirect decisions.

    resolve() never raises. Unknown, inactive or unreadable links send
    the client to the web root; expired links do too but still count a
    click. Clicks are emitted onto the click channel and written by its
    background writer, so the redirect never waits on click storage.
    """

    def __init__(
        self,
        store: IShortLinkStore,
        clicks: EventChannel[ClickEvent],
        config: EdgeConfig | None = None,
        country_lookup: CountryLookup | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            store: Link lookup.
            clicks: Channel receiving click events, see click_writer().
            config: Edge configuration. Uses defaults if not provided.
            country_lookup: Optional best-effort ip -> country code lookup.
            clock: Returns the current aware datetime. UTC now by default.
        """
        self._store = store
        self._clicks = clicks
        self._config = config or EdgeConfig()
        self._country_lookup = country_lookup
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def resolve(
        self,
        code: str,
        user_agent: str | None,
        ip: str | None,
        country: str | None = None,
    ) -> RedirectDecision:
        """Resolve a short code for a requester.

        Args:
            code: The short code from the URL.
            user_agent: Raw User-Agent header.
            ip: Requester ip address.
            country: Country code if the caller already knows it.

        Returns:
            The redirect decision; never raises.
        """
        platform = Platform.classify(user_agent)
        fallback_url = self._config.web_domain

        try:
            link = await self._store.get(code)
        except Exception:
            logger.exception("Short link lookup failed for %s", code)
            return RedirectDecision(
                url=fallback_url, platform=platform, fallback=True, reason="error", code=code
            )

        if link is None or not link.is_active:
            return RedirectDecision(
                url=fallback_url, platform=platform, fallback=True, reason="not_found", code=code
            )

        self._record_click(link, user_agent, ip, platform, country)

        if link.is_expired(self._clock()):
            return RedirectDecision(
                url=fallback_url,
                platform=platform,
                fallback=True,
                reason="expired",
                code=code,
                target=link.target,
            )

        return RedirectDecision(
            url=self.redirect_url(link, platform),
            platform=platform,
            code=code,
            target=link.target,
        )

    def redirect_url(self, link: ShortLink, platform: Platform) -> str:
        """Destination for a platform: native URI with store fallback, or the web page."""
        if platform is Platform.IOS:
            return f"{link.native_uri}?fallback={quote(self._config.app_store_url, safe='')}"
        if platform is Platform.ANDROID:
            return f"{link.native_uri}?fallback={quote(self._config.play_store_url, safe='')}"
        return link.web_url

    def _record_click(
        self,
        link: ShortLink,
        user_agent: str | None,
        ip: str | None,
        platform: Platform,
        country: str | None,
    ) -> None:
        if country is None and ip and self._country_lookup is not None:
            try:
                country = self._country_lookup(ip)
            except Exception:
                logger.warning("Country lookup failed for %s", ip, exc_info=True)

        self._clicks.emit(ClickEvent(
            link_id=link.id,
            code=link.code,
            clicked_at=self._clock(),
            user_agent=user_agent,
            ip=ip,
            platform=platform,
            country=country,
        ))


def click_writer(store: IShortLinkStore, clicks: IClickStore) -> Callable[[ClickEvent], "object"]:
    """Build the background writer for the click channel.

    The writer appends the event and bumps the link's click_count.

    Example:
        channel = EventChannel(click_writer(links, links), name="clicks")
    """

    async def write(event: ClickEvent) -> None:
        await clicks.append(event)
        await store.increment_clicks(event.link_id)

    return write
