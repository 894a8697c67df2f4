"""
Tesseract Engine - Local OCR as a stream of progress events.

    engine = TesseractEngine()
    async for event in engine.recognize(image_bytes):
        print(event.stage.value, event.percent)
    # last event: stage=DONE, percent=100, text=<recognized text>

Calling recognize() again restarts the sequence from the beginning.
"""

from __future__ import annotations

import asyncio
import io
import logging
from collections.abc import AsyncIterator

import pytesseract
from PIL import Image, ImageEnhance, ImageFilter, UnidentifiedImageError

from billsnap.config.errors import ProviderError

from .models import OcrEvent, OcrStage, TesseractConfig

logger = logging.getLogger(__name__)

__all__ = ["TesseractEngine", "preprocess_for_ocr"]


def preprocess_for_ocr(
    image: Image.Image,
    min_side_px: int = 300,
    contrast: float = 1.3,
) -> Image.Image:
    """Grayscale, upscale small images, sharpen, and boost contrast."""
    if image.mode != "L":
        image = image.convert("L")
    min_side = min(image.size)
    if 0 < min_side < min_side_px:
        scale = min_side_px / min_side
        image = image.resize(
            (max(min_side_px, int(image.width * scale)), max(min_side_px, int(image.height * scale))),
            Image.Resampling.LANCZOS,
        )
    image = image.filter(ImageFilter.SHARPEN)
    return ImageEnhance.Contrast(image).enhance(contrast)


def _open_image(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except Image.DecompressionBombError as e:
        raise ProviderError("Image dimensions are too large", {"reason": str(e)}) from e
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ProviderError("Could not read image", {"reason": str(e)}) from e
    return image


class TesseractEngine:
    """
    Local OCR engine backed by pytesseract.

    Example:
        >>> engine = TesseractEngine(TesseractConfig(lang="eng"))
        >>> text = await engine.recognize_text(png_bytes)
    """

    def __init__(self, config: TesseractConfig | None = None) -> None:
        self.config = config or TesseractConfig()
        if self.config.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.config.tesseract_cmd

    def _run_tesseract(self, image: Image.Image) -> str:
        try:
            return pytesseract.image_to_string(
                image,
                lang=self.config.lang,
                config=self.config.options,
            ).strip()
        except pytesseract.TesseractNotFoundError as e:
            raise ProviderError(
                "Tesseract is not installed or not on PATH",
                {"hint": "Install tesseract-ocr or set TESSERACT_CMD"},
            ) from e
        except pytesseract.TesseractError as e:
            raise ProviderError("Tesseract failed to recognize text", {"reason": str(e)}) from e

    async def recognize(self, data: bytes) -> AsyncIterator[OcrEvent]:
        """
        Recognize text in one image.

        Args:
            data: Encoded image bytes (PNG/JPEG/WEBP)

        Yields:
            OcrEvent per stage; the final DONE event carries the text

        Raises:
            ProviderError: Image unreadable or Tesseract failed
        """
        yield OcrEvent(stage=OcrStage.LOADING, percent=0.0)
        image = await asyncio.to_thread(_open_image, data)

        yield OcrEvent(stage=OcrStage.PREPROCESSING, percent=25.0)
        image = await asyncio.to_thread(
            preprocess_for_ocr,
            image,
            self.config.min_side_px,
            self.config.contrast,
        )

        yield OcrEvent(stage=OcrStage.RECOGNIZING, percent=50.0)
        text = await asyncio.to_thread(self._run_tesseract, image)
        logger.info("OCR complete: %d characters", len(text))

        yield OcrEvent(stage=OcrStage.DONE, percent=100.0, text=text)

    async def recognize_text(self, data: bytes) -> str:
        """Drain recognize() and return the final text."""
        text = ""
        async for event in self.recognize(data):
            if event.stage == OcrStage.DONE:
                text = event.text or ""
        return text
