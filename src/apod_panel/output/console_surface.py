"""Rich terminal surface for the picture widget."""

import logging

import httpx
from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from apod_panel.config import PanelConfig

logger = logging.getLogger(__name__)

PANEL_TITLE = "Astronomy Picture"


def fmt_size(num_bytes: int | None) -> str:
    if num_bytes is None:
        return "?"
    if num_bytes >= 1 << 20:
        return f"{num_bytes / (1 << 20):.1f} MB"
    if num_bytes >= 1 << 10:
        return f"{num_bytes / (1 << 10):.1f} KB"
    return f"{num_bytes} B"


class ConsoleSurface:
    """Keeps the link, image and caption slots and prints them as a panel.

    Terminals cannot show the picture itself, so loading an image means
    downloading it and reporting its type and size.
    """

    def __init__(
        self,
        console: Console | None = None,
        config: PanelConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.console = console or Console()
        self.config = config or PanelConfig()
        self._transport = transport
        self.link: str | None = None
        self.image_src: str | None = None
        self.image_title: str | None = None
        self.image_info: str = ""
        self.image_visible = True
        self.text = ""

    def set_link(self, href: str) -> None:
        self.link = href

    async def load_image(self, src: str, title: str) -> bool:
        self.image_src = src
        self.image_title = title
        self.image_visible = True
        self.image_info = ""
        try:
            async with httpx.AsyncClient(**self._client_kwargs()) as client:
                resp = await client.get(src)
                resp.raise_for_status()
        except httpx.HTTPError:
            logger.warning("Failed to load image: %s", src, exc_info=True)
            return False

        if self.image_src != src:
            logger.debug("Image %s replaced while loading", src)
            return True

        content_type = resp.headers.get("content-type", "unknown")
        self.image_info = f"{content_type}, {fmt_size(len(resp.content))}"
        logger.debug("Loaded image %s (%s)", src, self.image_info)
        return True

    def _client_kwargs(self) -> dict:
        kwargs: dict = {
            "headers": {"User-Agent": self.config.user_agent},
            "follow_redirects": True,
        }
        if self.config.timeout is not None:
            kwargs["timeout"] = self.config.timeout
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return kwargs

    def remove_image(self) -> None:
        self.image_src = None
        self.image_title = None
        self.image_info = ""
        self.image_visible = False

    def set_text(self, text: str) -> None:
        self.text = text

    def build(self) -> Panel:
        parts: list[Text] = []
        if self.image_visible and self.image_src:
            img = Text()
            img.append("Image: ", style="cyan")
            img.append(self.image_src, style=f"link {self.link or self.image_src}")
            if self.image_info:
                img.append(f"  ({self.image_info})", style="dim")
            parts.append(img)
        if self.link:
            parts.append(Text.assemble(("Page: ", "cyan"), self.link))
        if self.text:
            title, _, body = self.text.partition("\n")
            caption = Text(title, style="bold")
            if body:
                caption.append("\n" + body, style="")
            parts.append(caption)
        return Panel(Group(*parts), title=PANEL_TITLE, style="cyan")

    def render(self) -> None:
        self.console.print()
        self.console.print(self.build())
