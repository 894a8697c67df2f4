"""
Tests for settings and the error taxonomy.
"""

from __future__ import annotations

import pytest

from .errors import (
    AuthMissingError,
    ErrorCode,
    InvalidInputError,
    TransportError,
    error_code_to_status,
)
from .settings import Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("GOOGLE_GEMINI_API_KEY", "GOOGLE_GENERATIVE_AI_API_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_missing_key_is_not_an_error() -> None:
    settings = Settings(_env_file=None)
    assert settings.gemini_api_key is None


def test_key_from_primary_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOOGLE_GEMINI_API_KEY", "key-1")
    assert Settings(_env_file=None).gemini_api_key == "key-1"


def test_key_from_alias_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOOGLE_GENERATIVE_AI_API_KEY", "key-2")
    assert Settings(_env_file=None).gemini_api_key == "key-2"


def test_blank_key_counts_as_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOOGLE_GEMINI_API_KEY", "   ")
    assert Settings(_env_file=None).gemini_api_key is None


def test_key_hidden_in_repr(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOOGLE_GEMINI_API_KEY", "super-secret")
    assert "super-secret" not in repr(Settings(_env_file=None))


def test_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.gemini_model == "gemini-2.0-flash"
    assert settings.extraction_timeout_seconds == 60.0
    assert settings.max_image_bytes == 10 * 1024 * 1024


@pytest.mark.parametrize(
    ("code", "status"),
    [
        (ErrorCode.INVALID_INPUT, 400),
        (ErrorCode.AUTH_MISSING, 401),
        (ErrorCode.EXTRACTION_IN_PROGRESS, 409),
        (ErrorCode.RATE_LIMITED, 429),
        (ErrorCode.MALFORMED_OUTPUT, 500),
        (ErrorCode.PROVIDER_ERROR, 500),
        (ErrorCode.TRANSPORT_ERROR, 504),
        (ErrorCode.INTERNAL_ERROR, 500),
    ],
)
def test_error_code_to_status(code: ErrorCode, status: int) -> None:
    assert error_code_to_status(code) == status


def test_error_to_body_is_flat() -> None:
    error = InvalidInputError("No image provided", {"field": "image"})
    assert error.to_body() == {"error": "No image provided", "details": "field: image"}


def test_error_to_body_omits_empty_details() -> None:
    assert InvalidInputError("No image provided").to_body() == {"error": "No image provided"}


def test_subclasses_carry_their_code() -> None:
    assert AuthMissingError("x").code == ErrorCode.AUTH_MISSING
    assert TransportError("x").code == ErrorCode.TRANSPORT_ERROR
