"""
Tests for the Tesseract engine adapter.
"""

from __future__ import annotations

import io
from collections.abc import Generator
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from billsnap.config.errors import ErrorCode, ProviderError

from .engine import TesseractEngine, preprocess_for_ocr
from .models import OcrStage, TesseractConfig


def _png_bytes(size: tuple[int, int] = (120, 80), color: str = "white") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def mock_pytesseract() -> Generator[MagicMock, None, None]:
    """Mock pytesseract so tests do not need the tesseract binary."""
    with patch("billsnap.adapters.tesseract.engine.pytesseract") as mock:
        mock.image_to_string.return_value = "UBER\nTotal ₹245.00\n"
        mock.TesseractNotFoundError = type("TesseractNotFoundError", (EnvironmentError,), {})
        mock.TesseractError = type("TesseractError", (RuntimeError,), {})
        yield mock


# --- Preprocessing ---


def test_preprocess_converts_to_grayscale() -> None:
    image = Image.new("RGB", (400, 400), "red")
    assert preprocess_for_ocr(image).mode == "L"


def test_preprocess_upscales_small_images() -> None:
    image = Image.new("RGB", (100, 50), "white")
    result = preprocess_for_ocr(image, min_side_px=300)
    assert min(result.size) >= 300
    # aspect ratio preserved
    assert result.width == 2 * result.height


def test_preprocess_keeps_large_images() -> None:
    image = Image.new("L", (800, 600), 255)
    assert preprocess_for_ocr(image).size == (800, 600)


# --- Recognition ---


async def test_recognize_emits_stages_in_order(mock_pytesseract: MagicMock) -> None:
    engine = TesseractEngine()
    events = [event async for event in engine.recognize(_png_bytes())]

    assert [e.stage for e in events] == [
        OcrStage.LOADING,
        OcrStage.PREPROCESSING,
        OcrStage.RECOGNIZING,
        OcrStage.DONE,
    ]
    percents = [e.percent for e in events]
    assert percents == sorted(percents)
    assert percents[-1] == 100.0
    assert events[-1].text == "UBER\nTotal ₹245.00"
    assert all(e.text is None for e in events[:-1])


async def test_recognize_restarts_from_beginning(mock_pytesseract: MagicMock) -> None:
    engine = TesseractEngine()
    first = [e.stage async for e in engine.recognize(_png_bytes())]
    second = [e.stage async for e in engine.recognize(_png_bytes())]
    assert first == second
    assert mock_pytesseract.image_to_string.call_count == 2


async def test_recognize_text_passes_config(mock_pytesseract: MagicMock) -> None:
    engine = TesseractEngine(TesseractConfig(lang="eng+hin", options="--psm 4"))
    text = await engine.recognize_text(_png_bytes())

    assert text.startswith("UBER")
    kwargs = mock_pytesseract.image_to_string.call_args.kwargs
    assert kwargs["lang"] == "eng+hin"
    assert kwargs["config"] == "--psm 4"


def test_custom_tesseract_cmd_is_applied(mock_pytesseract: MagicMock) -> None:
    TesseractEngine(TesseractConfig(tesseract_cmd="/opt/tesseract"))
    assert mock_pytesseract.pytesseract.tesseract_cmd == "/opt/tesseract"


async def test_unreadable_image_raises_provider_error(mock_pytesseract: MagicMock) -> None:
    engine = TesseractEngine()
    with pytest.raises(ProviderError) as exc_info:
        await engine.recognize_text(b"not an image")

    assert exc_info.value.code == ErrorCode.PROVIDER_ERROR
    mock_pytesseract.image_to_string.assert_not_called()


async def test_missing_binary_raises_provider_error(mock_pytesseract: MagicMock) -> None:
    mock_pytesseract.image_to_string.side_effect = mock_pytesseract.TesseractNotFoundError()
    engine = TesseractEngine()

    with pytest.raises(ProviderError, match="not installed"):
        await engine.recognize_text(_png_bytes())


async def test_oversized_dimensions_raise_provider_error(
    mock_pytesseract: MagicMock, monkeypatch: pytest.MonkeyPatch
) -> None:
    # Pillow refuses images above twice MAX_IMAGE_PIXELS
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1_000)
    engine = TesseractEngine()

    with pytest.raises(ProviderError, match="too large"):
        await engine.recognize_text(_png_bytes(size=(100, 100)))

    mock_pytesseract.image_to_string.assert_not_called()
