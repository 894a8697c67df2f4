"""
Tesseract Models - Progress events and engine configuration.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class OcrStage(str, Enum):
    """Stages reported while recognizing one image."""

    LOADING = "loading image"
    PREPROCESSING = "preprocessing"
    RECOGNIZING = "recognizing text"
    DONE = "done"


class OcrEvent(BaseModel):
    """One progress step. Only the DONE event carries text."""

    stage: OcrStage
    percent: float = Field(ge=0.0, le=100.0)
    text: str | None = None

    model_config = {"frozen": True}


class TesseractConfig(BaseModel):
    """Configuration for the local OCR engine."""

    lang: str = Field(default="eng")
    tesseract_cmd: str | None = Field(default=None)
    # PSM 6 = assume uniform block of text (good for receipts/bills)
    options: str = Field(default="--psm 6 --oem 3")
    min_side_px: int = Field(default=300, gt=0)
    contrast: float = Field(default=1.3, gt=0.0)

    model_config = {"frozen": True}
