"""Click analytics - read-only aggregation over click events."""

from collections import Counter
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from mobiledge.core.entities.edge_config import EdgeConfig
from mobiledge.core.entities.link import LinkAnalytics
from mobiledge.core.exceptions import ValidationError
from mobiledge.core.interfaces.link_store import IClickStore


class ClickAnalytics:
    """Aggregates a link's clicks by day, platform and country.

    Dimensions without data come back as empty lists; events with no
    country are counted in the total but left out of by_country.
    """

    def __init__(
        self,
        clicks: IClickStore,
        config: EdgeConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._clicks = clicks
        self._config = config or EdgeConfig()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def aggregate(self, link_id: str, window_days: int = 30) -> LinkAnalytics:
        """Aggregate clicks of the last ``window_days`` days.

        Raises:
            ValidationError: If link_id is empty or window_days < 1.
        """
        if not link_id:
            raise ValidationError("link_id is required")
        if isinstance(window_days, bool) or not isinstance(window_days, int) or window_days < 1:
            raise ValidationError("window_days must be a positive integer")

        since = self._clock() - timedelta(days=window_days)
        events = await self._clicks.list_since(link_id, since)

        by_day = Counter(e.clicked_at.astimezone(timezone.utc).date() for e in events)
        by_platform = Counter(e.platform.value for e in events)
        by_country = Counter(e.country for e in events if e.country)

        return LinkAnalytics(
            link_id=link_id,
            window_days=window_days,
            since=since,
            total_clicks=len(events),
            by_day=sorted(by_day.items()),
            by_platform=by_platform.most_common(),
            by_country=by_country.most_common(self._config.analytics_country_limit),
        )
