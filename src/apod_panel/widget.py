"""Random astronomy picture widget."""

import logging
from collections.abc import Callable
from typing import Protocol

from apod_panel.config import PanelConfig
from apod_panel.data.apod_client import ApodClient, archive_link, random_date
from apod_panel.models import ErrorEnvelope, PanelState, PictureRecord, WidgetStatus

logger = logging.getLogger(__name__)

NOT_AN_IMAGE = "Random APOD fetched was not an image."


class PresentationSurface(Protocol):
    """Anything that can show a link, an image and a caption."""

    def set_link(self, href: str) -> None: ...

    async def load_image(self, src: str, title: str) -> bool:
        """Show the image and return once it has loaded (False on failure)."""
        ...

    def remove_image(self) -> None: ...

    def set_text(self, text: str) -> None: ...


class PictureWidget:
    """Fetches a random APOD record and writes it into its three slots."""

    def __init__(
        self,
        client: ApodClient | None = None,
        surface: PresentationSurface | None = None,
        config: PanelConfig | None = None,
        pick_date: Callable[[], str] | None = None,
    ) -> None:
        self.config = config or (client.config if client else PanelConfig())
        self.client = client or ApodClient(self.config)
        self.surface = surface
        self.state = PanelState()
        self._pick_date = pick_date or (
            lambda: random_date(start=self.config.earliest_date)
        )
        self._pending = 0
        # Bumped per handled response; an image load only captions its own
        self._shown = 0
        self._disposed = False

    @property
    def status(self) -> WidgetStatus:
        return WidgetStatus.LOADING if self._pending else WidgetStatus.IDLE

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Detach from the surface. Late responses are dropped silently."""
        self._disposed = True
        self.surface = None

    async def refresh(self) -> None:
        """Load a random picture into the widget.

        Remote rejections end up in the caption. Transport failures and
        unparseable bodies propagate to the caller.
        """
        self._pending += 1
        try:
            day = self._pick_date()
            resp = await self.client.fetch(day)
            self._shown += 1

            if not resp.is_success:
                envelope = ErrorEnvelope.model_validate(resp.json())
                message = envelope.message_or(resp.reason_phrase)
                logger.warning("APOD request for %s rejected: %s", day, message)
                self._set_text(message)
                return

            record = PictureRecord.model_validate(resp.json())
            if record.is_image:
                await self._show_image(day, record)
            else:
                logger.info("APOD for %s is a %s", day, record.media_type)
                self._remove_image()
                self._set_text(NOT_AN_IMAGE)
        finally:
            self._pending -= 1

    async def _show_image(self, day: str, record: PictureRecord) -> None:
        token = self._shown
        self._set_link(archive_link(day, self.config.archive_url))
        if self._disposed:
            return

        self.state.image_src = record.url
        self.state.image_title = record.title
        self.state.image_visible = True
        loaded = True
        if self.surface is not None:
            loaded = await self.surface.load_image(record.url, record.title)
        if not loaded:
            logger.warning("Image %s did not load", record.url)
            return
        if token != self._shown:
            logger.debug("Image %s superseded by a newer response", record.url)
            return
        self._set_text(record.caption())

    def _set_link(self, href: str) -> None:
        if self._disposed:
            return
        self.state.link = href
        if self.surface is not None:
            self.surface.set_link(href)

    def _remove_image(self) -> None:
        if self._disposed:
            return
        self.state.image_src = None
        self.state.image_title = None
        self.state.image_visible = False
        if self.surface is not None:
            self.surface.remove_image()

    def _set_text(self, text: str) -> None:
        if self._disposed:
            logger.debug("Widget disposed, dropping caption update")
            return
        self.state.caption = text
        if self.surface is not None:
            self.surface.set_text(text)
