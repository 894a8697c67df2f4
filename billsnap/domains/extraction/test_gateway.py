"""
Tests for the extraction gateway, classifier and local OCR extractor.
"""

from __future__ import annotations

import asyncio
import base64
import io
import json
from collections.abc import AsyncIterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from PIL import Image

from billsnap.adapters.gemini import (
    GeminiAPIError,
    GeminiAuthError,
    GeminiClient,
    GeminiConfig,
    GeminiResponse,
    RateLimitError,
)
from billsnap.adapters.tesseract import OcrEvent, OcrStage, TesseractEngine
from billsnap.config.errors import BillSnapError, ErrorCode, ProviderError, RateLimitedError

from .classifier import NO_DATA_MESSAGE, classify
from .datauri import encode_data_uri
from .gateway import ExtractionGateway, LocalOcrExtractor
from .models import ExtractionFailure, ExtractionSuccess, Purpose

PNG = b"\x89PNG\r\n\x1a\nfake-image"
IMAGE = "data:image/png;base64," + base64.b64encode(PNG).decode()
VALID_OUTPUT = {
    "bill_no": "N/A",
    "amount": "₹245.00",
    "purpose": "Conveyance",
    "raw_text": "UBER\nTotal ₹245.00",
}


def _response(payload: object) -> GeminiResponse:
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return GeminiResponse(text=text, model="gemini-test", total_tokens=100)


@pytest.fixture
def mock_client() -> MagicMock:
    """Create a mock Gemini client."""
    client = MagicMock(spec=GeminiClient)
    client.model = "gemini-test"
    client.acquire_slot = AsyncMock()
    client.generate_structured = AsyncMock(return_value=_response(VALID_OUTPUT))
    return client


@pytest.fixture
def gateway(mock_client: MagicMock) -> ExtractionGateway:
    return ExtractionGateway(mock_client, timeout_seconds=1.0)


# --- Success path ---


async def test_extract_success(gateway: ExtractionGateway) -> None:
    result = await gateway.extract(IMAGE)

    assert isinstance(result, ExtractionSuccess)
    assert result.data.purpose == Purpose.CONVEYANCE
    assert result.data.amount == "₹245.00"
    assert result.data.bill_no == "N/A"


async def test_extract_sends_decoded_image_and_schema(
    gateway: ExtractionGateway, mock_client: MagicMock
) -> None:
    await gateway.extract(IMAGE)

    kwargs = mock_client.generate_structured.call_args.kwargs
    assert kwargs["image"].mime_type == "image/png"
    assert kwargs["image"].data == PNG
    assert kwargs["response_schema"]["required"] == ["bill_no", "amount", "purpose", "raw_text"]
    assert "Conveyance" in kwargs["system_instruction"]


async def test_bare_base64_uses_mime_type(
    gateway: ExtractionGateway, mock_client: MagicMock
) -> None:
    await gateway.extract(base64.b64encode(PNG).decode(), "image/jpeg")

    image = mock_client.generate_structured.call_args.kwargs["image"]
    assert image.mime_type == "image/jpeg"
    assert image.data == PNG


async def test_provider_called_exactly_once_on_failure(
    gateway: ExtractionGateway, mock_client: MagicMock
) -> None:
    mock_client.generate_structured.side_effect = GeminiAPIError("Gemini API error: 503")

    await gateway.extract(IMAGE)

    mock_client.generate_structured.assert_awaited_once()


# --- Invalid input ---


@pytest.mark.parametrize("image", [None, "", "   "])
async def test_missing_image(
    gateway: ExtractionGateway, mock_client: MagicMock, image: str | None
) -> None:
    result = await gateway.extract(image)

    assert isinstance(result, ExtractionFailure)
    assert result.category == ErrorCode.INVALID_INPUT
    assert result.message == "No image provided"
    mock_client.generate_structured.assert_not_called()


async def test_invalid_base64(gateway: ExtractionGateway) -> None:
    result = await gateway.extract("data:image/png;base64,@@@")
    assert result.category == ErrorCode.INVALID_INPUT


async def test_unsupported_mime_type(gateway: ExtractionGateway) -> None:
    result = await gateway.extract(IMAGE.replace("image/png", "application/pdf"))
    assert result.category == ErrorCode.INVALID_INPUT
    assert "Unsupported image format" in result.message


async def test_image_too_large(mock_client: MagicMock) -> None:
    gateway = ExtractionGateway(mock_client, max_image_bytes=4)
    result = await gateway.extract(IMAGE)
    assert result.category == ErrorCode.INVALID_INPUT
    assert "too large" in result.message


# --- Provider failures ---


async def test_missing_key_is_auth_missing() -> None:
    with patch("billsnap.adapters.gemini.client.genai") as mock_genai:
        gateway = ExtractionGateway(GeminiClient(GeminiConfig(api_key=None)))
        result = await gateway.extract(IMAGE)

    assert result.category == ErrorCode.AUTH_MISSING
    assert result.remediation is not None
    assert "aistudio.google.com/apikey" in result.remediation.instructions
    assert result.remediation.steps
    mock_genai.GenerativeModel.assert_not_called()


async def test_api_key_error_is_auth_missing(
    gateway: ExtractionGateway, mock_client: MagicMock
) -> None:
    mock_client.generate_structured.side_effect = GeminiAuthError(
        "Invalid API key: API key not valid. Please pass a valid API key."
    )

    result = await gateway.extract(IMAGE)

    assert result.category == ErrorCode.AUTH_MISSING
    assert result.remediation is not None


async def test_rate_limit(gateway: ExtractionGateway, mock_client: MagicMock) -> None:
    mock_client.generate_structured.side_effect = RateLimitError("Rate limit exceeded: 429 quota")

    result = await gateway.extract(IMAGE)

    assert result.category == ErrorCode.RATE_LIMITED
    assert result.details == "Rate limit exceeded: 429 quota"
    assert result.remediation is None


async def test_no_data_returned(gateway: ExtractionGateway, mock_client: MagicMock) -> None:
    mock_client.generate_structured.return_value = None

    result = await gateway.extract(IMAGE)

    assert result.category == ErrorCode.PROVIDER_ERROR
    assert result.details == NO_DATA_MESSAGE
    assert result.suggestion


async def test_other_provider_error(gateway: ExtractionGateway, mock_client: MagicMock) -> None:
    mock_client.generate_structured.side_effect = GeminiAPIError("Gemini API error: 500 internal")

    result = await gateway.extract(IMAGE)

    assert result.category == ErrorCode.PROVIDER_ERROR
    assert result.message == "Failed to process image with Gemini API"
    assert "500 internal" in result.details
    assert "Basic OCR" in result.suggestion


async def test_timeout_is_transport_error(mock_client: MagicMock) -> None:
    async def never_returns(**kwargs: object) -> None:
        await asyncio.sleep(10)

    mock_client.generate_structured.side_effect = never_returns
    gateway = ExtractionGateway(mock_client, timeout_seconds=0.01)

    result = await gateway.extract(IMAGE)

    assert result.category == ErrorCode.TRANSPORT_ERROR
    assert "timed out" in result.details


async def test_rate_limit_wait_does_not_count_against_timeout(mock_client: MagicMock) -> None:
    async def slow_slot() -> None:
        await asyncio.sleep(0.05)

    mock_client.acquire_slot.side_effect = slow_slot
    gateway = ExtractionGateway(mock_client, timeout_seconds=0.01)

    result = await gateway.extract(IMAGE)

    assert isinstance(result, ExtractionSuccess)
    mock_client.acquire_slot.assert_awaited_once()
    assert mock_client.generate_structured.call_args.kwargs["pace"] is False


# --- Malformed output ---


@pytest.mark.parametrize(
    "payload",
    [
        "not json at all",
        {**VALID_OUTPUT, "purpose": "Groceries"},
        {k: v for k, v in VALID_OUTPUT.items() if k != "amount"},
        [VALID_OUTPUT],
    ],
)
async def test_malformed_output(
    gateway: ExtractionGateway, mock_client: MagicMock, payload: object
) -> None:
    mock_client.generate_structured.return_value = _response(payload)

    result = await gateway.extract(IMAGE)

    assert result.category == ErrorCode.MALFORMED_OUTPUT
    assert result.message == "Failed to extract data from image"


# --- Classifier ---


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (Exception("API_KEY_INVALID"), ErrorCode.AUTH_MISSING),
        (Exception("Resource has been exhausted (e.g. check quota)."), ErrorCode.RATE_LIMITED),
        (Exception("HTTP 429 Too Many Requests"), ErrorCode.RATE_LIMITED),
        (ConnectionError("connection reset"), ErrorCode.TRANSPORT_ERROR),
        (TimeoutError(), ErrorCode.TRANSPORT_ERROR),
        (ValueError("something odd"), ErrorCode.PROVIDER_ERROR),
        (RateLimitedError("slow down"), ErrorCode.RATE_LIMITED),
    ],
)
def test_classify(error: BaseException, expected: ErrorCode) -> None:
    assert classify(error).category == expected


def test_auth_wins_over_rate_limit() -> None:
    failure = classify(Exception("API key quota exceeded"))
    assert failure.category == ErrorCode.AUTH_MISSING


def test_only_auth_carries_remediation() -> None:
    for code in ErrorCode:
        if code in (ErrorCode.EXTRACTION_IN_PROGRESS, ErrorCode.INTERNAL_ERROR):
            continue
        failure = classify(BillSnapError(code, "boom"))
        assert (failure.remediation is not None) == (code == ErrorCode.AUTH_MISSING)


# --- Local OCR ---


class FakeEngine:
    def __init__(self, text: str = "", error: Exception | None = None) -> None:
        self.text = text
        self.error = error

    async def recognize(self, data: bytes) -> AsyncIterator[OcrEvent]:
        yield OcrEvent(stage=OcrStage.LOADING, percent=0.0)
        if self.error is not None:
            raise self.error
        yield OcrEvent(stage=OcrStage.RECOGNIZING, percent=50.0)
        yield OcrEvent(stage=OcrStage.DONE, percent=100.0, text=self.text)


async def test_local_ocr_success_with_progress() -> None:
    extractor = LocalOcrExtractor(FakeEngine("Invoice No: 7781\nUBER\nTotal ₹245.00"))
    events: list[OcrEvent] = []

    result = await extractor.extract(IMAGE, on_progress=events.append)

    assert isinstance(result, ExtractionSuccess)
    assert result.data.bill_no == "7781"
    assert result.data.amount == "₹245.00"
    assert result.data.purpose == Purpose.CONVEYANCE
    assert [e.percent for e in events] == [0.0, 50.0, 100.0]


async def test_local_ocr_engine_failure() -> None:
    extractor = LocalOcrExtractor(FakeEngine(error=ProviderError("Could not read image")))

    result = await extractor.extract(IMAGE)

    assert result.category == ErrorCode.PROVIDER_ERROR
    assert result.message == "Failed to extract text"
    assert result.details == "Could not read image"
    assert result.suggestion


async def test_local_ocr_rejects_missing_image() -> None:
    result = await LocalOcrExtractor(FakeEngine()).extract(None)
    assert result.category == ErrorCode.INVALID_INPUT


async def test_local_ocr_unexpected_engine_error() -> None:
    extractor = LocalOcrExtractor(FakeEngine(error=RuntimeError("tesseract segfault")))

    result = await extractor.extract(IMAGE)

    assert result.category == ErrorCode.PROVIDER_ERROR
    assert result.details == "tesseract segfault"


async def test_local_ocr_huge_dimensions_resolve_to_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1_000)
    buffer = io.BytesIO()
    Image.new("1", (100, 100)).save(buffer, format="PNG")
    extractor = LocalOcrExtractor(TesseractEngine())

    result = await extractor.extract(encode_data_uri(buffer.getvalue(), "image/png"))

    assert isinstance(result, ExtractionFailure)
    assert result.category == ErrorCode.PROVIDER_ERROR
    assert result.details == "Image dimensions are too large"
