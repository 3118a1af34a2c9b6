"""Client for the NASA Astronomy Picture of the Day API."""

import logging
import random
from datetime import UTC, date, datetime, time

import httpx

from apod_panel.config import APOD_ARCHIVE_URL, EARLIEST_DATE, PanelConfig

logger = logging.getLogger(__name__)


def random_date(
    now: datetime | None = None,
    rng: random.Random | None = None,
    start: date = EARLIEST_DATE,
) -> str:
    """Pick a uniformly random instant between ``start`` and ``now``.

    The instant is truncated to its UTC calendar day and returned as
    ``YYYY-MM-DD``. A ``now`` before ``start`` yields ``start``.
    """
    end = now or datetime.now(UTC)
    if end.tzinfo is None:
        end = end.replace(tzinfo=UTC)
    begin = datetime.combine(start, time.min, tzinfo=UTC)

    span = max((end - begin).total_seconds(), 0.0)
    offset = (rng or random).random() * span
    picked = datetime.fromtimestamp(begin.timestamp() + offset, tz=UTC)
    return picked.date().isoformat()


def archive_link(day: str, archive_url: str = APOD_ARCHIVE_URL) -> str:
    """Human-readable APOD page for a date, e.g. 2020-05-10 -> ap200510.html."""
    compact = day.replace("-", "")[2:]
    return f"{archive_url}/ap{compact}.html"


class ApodClient:
    """Async wrapper around the planetary/apod endpoint.

    One GET per call. No retries and no caching.
    """

    def __init__(
        self,
        config: PanelConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or PanelConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            kwargs: dict = {
                "headers": {"User-Agent": self.config.user_agent},
                "follow_redirects": True,
            }
            if self.config.timeout is not None:
                kwargs["timeout"] = self.config.timeout
            if self._transport is not None:
                kwargs["transport"] = self._transport
            self._client = httpx.AsyncClient(**kwargs)
        return self._client

    def params_for(self, day: str) -> dict[str, str]:
        return {"api_key": self.config.api_key, "date": day}

    async def fetch(self, day: str) -> httpx.Response:
        """Request the record for ``day``. Transport errors propagate."""
        logger.debug("Requesting APOD for %s", day)
        resp = await self.client.get(self.config.endpoint, params=self.params_for(day))
        logger.info("APOD %s -> HTTP %d", day, resp.status_code)
        return resp

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
