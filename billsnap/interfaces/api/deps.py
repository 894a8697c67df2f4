"""
API Dependencies - Dependency injection for FastAPI routes.

Provides singleton extractor instances built from settings.
"""

from __future__ import annotations

from functools import lru_cache

from billsnap.adapters.gemini import GeminiClient, GeminiConfig
from billsnap.adapters.tesseract import TesseractConfig, TesseractEngine
from billsnap.config import get_settings
from billsnap.domains.extraction import ExtractionGateway, LocalOcrExtractor


@lru_cache
def get_gateway() -> ExtractionGateway:
    """
    Get extraction gateway singleton.

    A missing API key does not fail here; each request then resolves to an
    AUTH_MISSING result.
    """
    settings = get_settings()
    client = GeminiClient(
        GeminiConfig(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            temperature=settings.gemini_temperature,
            timeout_seconds=settings.extraction_timeout_seconds,
            rate_limit_rpm=settings.gemini_rate_limit_rpm,
        )
    )
    return ExtractionGateway(
        client,
        timeout_seconds=settings.extraction_timeout_seconds,
        max_image_bytes=settings.max_image_bytes,
    )


@lru_cache
def get_local_ocr() -> LocalOcrExtractor:
    """Get local OCR extractor singleton."""
    settings = get_settings()
    engine = TesseractEngine(
        TesseractConfig(lang=settings.tesseract_lang, tesseract_cmd=settings.tesseract_cmd)
    )
    return LocalOcrExtractor(engine, max_image_bytes=settings.max_image_bytes)
