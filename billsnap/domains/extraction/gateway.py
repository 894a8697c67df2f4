"""
Extraction Gateway - One extraction request, one normalized result.

Every call resolves to an ExtractionResult. Provider exceptions never cross
this boundary; they are classified into ExtractionFailure values.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from billsnap.adapters.gemini import InlineImage
from billsnap.adapters.tesseract import OcrEvent, OcrStage
from billsnap.config.errors import (
    BillSnapError,
    ErrorCode,
    InvalidInputError,
    MalformedOutputError,
)

from .classifier import classify, failure_for
from .datauri import decode_data_uri, ensure_data_uri
from .models import (
    RESPONSE_SCHEMA,
    ExtractionFailure,
    ExtractionResult,
    ExtractionSuccess,
    validate_extraction,
)
from .policy import build_system_prompt, build_user_prompt, fields_from_text

if TYPE_CHECKING:
    from billsnap.adapters.gemini import GeminiClient
    from billsnap.adapters.tesseract import TesseractEngine

ProgressCallback = Callable[[OcrEvent], None]

logger = logging.getLogger(__name__)

__all__ = ["ExtractionGateway", "LocalOcrExtractor", "ProgressCallback", "SUPPORTED_MIME_TYPES"]

NO_IMAGE_MESSAGE = "No image provided"
SUPPORTED_MIME_TYPES = frozenset(
    {"image/jpeg", "image/jpg", "image/png", "image/webp", "image/heic", "image/heif"}
)
DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024


def _load_image(
    image: str | None,
    mime_type: str | None,
    max_bytes: int,
) -> InlineImage:
    """Normalize to a data URI and decode it. Raises InvalidInputError."""
    if not image or not image.strip():
        raise InvalidInputError(NO_IMAGE_MESSAGE)

    data_uri = ensure_data_uri(image, mime_type)
    declared_type, data = decode_data_uri(data_uri)

    if not data:
        raise InvalidInputError(NO_IMAGE_MESSAGE)
    if declared_type not in SUPPORTED_MIME_TYPES:
        raise InvalidInputError(
            "Unsupported image format. Use JPEG, PNG, or WebP.",
            {"mime_type": declared_type},
        )
    if len(data) > max_bytes:
        raise InvalidInputError(
            f"Image too large. Maximum size is {max_bytes // (1024 * 1024)} MB.",
            {"size": len(data)},
        )
    return InlineImage(mime_type=declared_type, data=data)


class ExtractionGateway:
    """
    Structured extraction through the Gemini adapter.

    Example:
        >>> gateway = ExtractionGateway(GeminiClient(GeminiConfig(api_key="...")))
        >>> result = await gateway.extract("data:image/png;base64,iVBOR...")
        >>> if result.ok:
        ...     print(result.data.amount)
    """

    def __init__(
        self,
        client: GeminiClient,
        timeout_seconds: float = 60.0,
        max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
    ) -> None:
        """
        Initialize gateway.

        Args:
            client: Gemini API client
            timeout_seconds: Upper bound for the model call
            max_image_bytes: Largest decoded image accepted
        """
        self._client = client
        self._timeout = timeout_seconds
        self._max_image_bytes = max_image_bytes
        self._system_prompt = build_system_prompt()

    async def extract(
        self,
        image: str | None,
        mime_type: str | None = None,
    ) -> ExtractionResult:
        """
        Extract bill fields from an image.

        Args:
            image: Data URI, or bare base64 combined with mime_type
            mime_type: Content type used when image is bare base64

        Returns:
            ExtractionSuccess or ExtractionFailure
        """
        try:
            inline = _load_image(image, mime_type, self._max_image_bytes)
        except InvalidInputError as e:
            logger.info("Rejected extraction input: %s", e.message)
            return failure_for(ErrorCode.INVALID_INPUT, e.message)

        start_time = time.perf_counter()
        logger.info(
            "Starting extraction: mime=%s bytes=%d model=%s",
            inline.mime_type,
            len(inline.data),
            self._client.model,
        )

        # Local pacing is not part of the provider deadline
        await self._client.acquire_slot()
        try:
            response = await asyncio.wait_for(
                self._client.generate_structured(
                    prompt=build_user_prompt(),
                    image=inline,
                    response_schema=RESPONSE_SCHEMA,
                    system_instruction=self._system_prompt,
                    pace=False,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            return classify(TimeoutError(f"Extraction timed out after {self._timeout:.0f}s"))
        except Exception as e:
            return classify(e)

        if response is None:
            return classify(None)

        try:
            data = validate_extraction(_parse_json(response.text))
        except MalformedOutputError as e:
            logger.warning("Model output rejected: %s details=%s", e.message, e.details)
            return failure_for(ErrorCode.MALFORMED_OUTPUT, e.message)

        logger.info(
            "Extraction complete: purpose=%s tokens=%d in %.1fs",
            data.purpose.value,
            response.total_tokens,
            time.perf_counter() - start_time,
        )
        return ExtractionSuccess(data=data)


def _parse_json(text: str) -> object:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedOutputError("Model output is not valid JSON", {"reason": str(e)}) from e


class LocalOcrExtractor:
    """
    Extraction through the local Tesseract engine.

    Bill fields are derived from the recognized text with the same rules the
    model is instructed with.
    """

    def __init__(self, engine: TesseractEngine, max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES) -> None:
        self._engine = engine
        self._max_image_bytes = max_image_bytes

    async def extract(
        self,
        image: str | None,
        mime_type: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ExtractionResult:
        """Run OCR on a data URI / base64 image and derive bill fields."""
        try:
            inline = _load_image(image, mime_type, self._max_image_bytes)
        except InvalidInputError as e:
            return failure_for(ErrorCode.INVALID_INPUT, e.message)
        return await self.extract_bytes(inline.data, on_progress)

    async def extract_bytes(
        self,
        data: bytes,
        on_progress: ProgressCallback | None = None,
    ) -> ExtractionResult:
        """
        Run OCR on raw image bytes and derive bill fields.

        on_progress receives every OcrEvent the engine emits, in order.
        """
        text = ""
        try:
            async for event in self._engine.recognize(data):
                if on_progress is not None:
                    on_progress(event)
                if event.stage == OcrStage.DONE:
                    text = event.text or ""
        except BillSnapError as e:
            logger.warning("Local OCR failed: %s", e.message)
            return _ocr_failure(e.message)
        except Exception as e:
            logger.exception("Local OCR crashed")
            return _ocr_failure(str(e) or type(e).__name__)
        return ExtractionSuccess(data=fields_from_text(text))


def _ocr_failure(details: str) -> ExtractionFailure:
    return ExtractionFailure(
        category=ErrorCode.PROVIDER_ERROR,
        message="Failed to extract text",
        details=details,
        suggestion="Please try again with a clearer image",
    )
