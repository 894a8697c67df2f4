"""
Tesseract Adapter - Local OCR engine.

Used for the "Basic OCR" path that works without a model API key.
"""

from .engine import TesseractEngine, preprocess_for_ocr
from .models import OcrEvent, OcrStage, TesseractConfig

__all__ = [
    "TesseractEngine",
    "TesseractConfig",
    "OcrEvent",
    "OcrStage",
    "preprocess_for_ocr",
]
