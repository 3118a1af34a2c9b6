from apod_panel.models.picture import (
    ErrorDetail,
    ErrorEnvelope,
    MediaType,
    PictureRecord,
)
from apod_panel.models.widget import PanelState, WidgetStatus

__all__ = [
    "ErrorDetail",
    "ErrorEnvelope",
    "MediaType",
    "PanelState",
    "PictureRecord",
    "WidgetStatus",
]
