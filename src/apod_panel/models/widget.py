from enum import StrEnum

from pydantic import BaseModel


class WidgetStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"


class PanelState(BaseModel):
    link: str | None = None
    image_src: str | None = None
    image_title: str | None = None
    image_visible: bool = True
    caption: str = ""
