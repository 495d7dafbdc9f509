"""Pydantic schemas for media uploads."""

from pydantic import BaseModel

from civicwatch.schemas.report import CamelModel


class UploadOutcome(BaseModel):
    """Result of uploading one file. Exactly one of ``url`` / ``error`` is set."""

    index: int
    filename: str | None = None
    url: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.url is not None


class MediaUploadResponse(CamelModel):
    """Envelope for a batch upload. Partial success is reported via the counts."""

    success: bool = True
    message: str | None = None
    media_urls: list[str] = []
    audio_url: str | None = None
    attempted: int = 0
    succeeded: int = 0
    failures: list[UploadOutcome] = []


class SingleMediaUploadResponse(CamelModel):
    """Envelope for a single-file upload."""

    success: bool = True
    message: str | None = None
    media_url: str
