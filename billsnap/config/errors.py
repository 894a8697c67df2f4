"""
Error Taxonomy - Consistent error codes across the application.

Usage:
    from billsnap.config.errors import ErrorCode, BillSnapError

    raise BillSnapError(ErrorCode.INVALID_INPUT, "No image provided")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Caller supplied no image, or one we cannot read
    INVALID_INPUT = "INVALID_INPUT"

    # Model provider errors
    AUTH_MISSING = "AUTH_MISSING"
    RATE_LIMITED = "RATE_LIMITED"
    MALFORMED_OUTPUT = "MALFORMED_OUTPUT"
    PROVIDER_ERROR = "PROVIDER_ERROR"

    # Network failure before any response
    TRANSPORT_ERROR = "TRANSPORT_ERROR"

    # Client session errors
    EXTRACTION_IN_PROGRESS = "EXTRACTION_IN_PROGRESS"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class BillSnapError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_body(self) -> dict[str, Any]:
        """Flat JSON error body, same shape as extraction failures."""
        body: dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = "; ".join(f"{k}: {v}" for k, v in self.details.items())
        return body


# Category-specific exceptions for cleaner imports
class InvalidInputError(BillSnapError):
    """No image, or an image that cannot be decoded."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.INVALID_INPUT, message, details)


class AuthMissingError(BillSnapError):
    """Model credential absent or rejected."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.AUTH_MISSING, message, details)


class RateLimitedError(BillSnapError):
    """Provider quota or throttling."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.RATE_LIMITED, message, details)


class MalformedOutputError(BillSnapError):
    """Model output failed schema validation."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.MALFORMED_OUTPUT, message, details)


class ProviderError(BillSnapError):
    """Any other upstream failure, local OCR included."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.PROVIDER_ERROR, message, details)


class TransportError(BillSnapError):
    """Network failure before any response arrived."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.TRANSPORT_ERROR, message, details)


class ExtractionInProgressError(BillSnapError):
    """An extraction is already uploading/analyzing for this session."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EXTRACTION_IN_PROGRESS, message, details)


def error_code_to_status(code: ErrorCode) -> int:
    """Map error codes to HTTP status codes."""
    mapping = {
        # 400 Bad Request
        ErrorCode.INVALID_INPUT: 400,
        # 401 Unauthorized
        ErrorCode.AUTH_MISSING: 401,
        # 409 Conflict
        ErrorCode.EXTRACTION_IN_PROGRESS: 409,
        # 429 Rate Limited
        ErrorCode.RATE_LIMITED: 429,
        # 504 Gateway Timeout
        ErrorCode.TRANSPORT_ERROR: 504,
    }
    return mapping.get(code, 500)
