"""
Session Models - State of one image's extraction attempt.
"""

from __future__ import annotations

import mimetypes
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from billsnap.adapters.tesseract import OcrEvent
from billsnap.domains.extraction import ExtractionResult


class SessionStatus(str, Enum):
    """Attempt lifecycle: idle -> uploading -> analyzing -> done | failed."""

    IDLE = "idle"
    UPLOADING = "uploading"
    ANALYZING = "analyzing"
    DONE = "done"
    FAILED = "failed"

    @property
    def busy(self) -> bool:
        return self in (SessionStatus.UPLOADING, SessionStatus.ANALYZING)

    @property
    def label(self) -> str:
        """Human-readable status line."""
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    SessionStatus.IDLE: "Ready",
    SessionStatus.UPLOADING: "Uploading image...",
    SessionStatus.ANALYZING: "Analyzing image...",
    SessionStatus.DONE: "Done",
    SessionStatus.FAILED: "Failed",
}


class ImageSource(BaseModel):
    """An image selected by the user: a file path or in-memory bytes."""

    path: Path | None = None
    data: bytes | None = None
    mime_type: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _one_origin(self) -> ImageSource:
        if (self.path is None) == (self.data is None):
            raise ValueError("Provide exactly one of path or data")
        return self

    @property
    def resolved_mime_type(self) -> str | None:
        """Declared type, else guessed from the file name."""
        if self.mime_type:
            return self.mime_type.lower()
        if self.path is not None:
            guessed, _ = mimetypes.guess_type(self.path.name)
            return guessed
        return None

    @property
    def name(self) -> str:
        return self.path.name if self.path is not None else "<memory>"


class ExtractionSession(BaseModel):
    """
    Snapshot of the current session.

    Every new image selection starts a new generation; only the attempt
    that belongs to the current generation may change the snapshot.
    """

    generation: int = Field(default=0, ge=0)
    source: ImageSource | None = None
    status: SessionStatus = SessionStatus.IDLE
    result: ExtractionResult | None = None
    progress: OcrEvent | None = None

    model_config = {"frozen": True}
