from enum import StrEnum

from pydantic import BaseModel


class MediaType(StrEnum):
    IMAGE = "image"
    VIDEO = "video"


class PictureRecord(BaseModel):
    """One APOD entry as returned by the planetary/apod endpoint."""

    date: str = ""
    title: str = ""
    explanation: str = ""
    media_type: str = ""
    url: str = ""
    copyright: str | None = None

    @property
    def is_image(self) -> bool:
        return self.media_type == MediaType.IMAGE

    @property
    def attribution(self) -> str:
        """Trimmed copyright holder, empty when there is none."""
        return (self.copyright or "").strip()

    def caption(self) -> str:
        text = f"{self.title}\n{self.explanation}"
        if self.attribution:
            text += f" (Copyright {self.attribution})"
        return text


class ErrorDetail(BaseModel):
    code: str | int | None = None
    message: str | None = None


class ErrorEnvelope(BaseModel):
    error: ErrorDetail | None = None

    def message_or(self, fallback: str) -> str:
        if self.error and self.error.message:
            return self.error.message
        return fallback
