"""
Wire Format - HTTP bodies for extraction results.

    200  {"success": true, "data": {...}}
    400  {"error": "No image provided"}
    401  {"error": ..., "instructions": ...}
    429  {"error": ..., "details": ...}
    500  {"error": "Failed to extract data from image"}      (malformed output)
    500  {"error": ..., "details": ..., "suggestion": ...}   (provider error)
    504  {"error": ..., "details": ...}                      (transport error)

result_to_body() is used by the API; result_from_body() by HTTP clients.
"""

from __future__ import annotations

from typing import Any

from billsnap.config.errors import ErrorCode, MalformedOutputError, error_code_to_status

from .classifier import AUTH_REMEDIATION, MALFORMED_MESSAGE, failure_for
from .models import ExtractionFailure, ExtractionResult, ExtractionSuccess, validate_extraction

__all__ = ["result_to_body", "result_from_body"]


def result_to_body(result: ExtractionResult) -> tuple[int, dict[str, Any]]:
    """Status code and JSON body for a result."""
    if isinstance(result, ExtractionSuccess):
        return 200, {"success": True, "data": result.data.model_dump(mode="json")}

    body: dict[str, Any] = {"error": result.message}
    if result.category == ErrorCode.AUTH_MISSING:
        if result.remediation is not None:
            body["instructions"] = result.remediation.instructions
    elif result.category in (
        ErrorCode.RATE_LIMITED,
        ErrorCode.PROVIDER_ERROR,
        ErrorCode.TRANSPORT_ERROR,
    ):
        if result.details is not None:
            body["details"] = result.details
        if result.category == ErrorCode.PROVIDER_ERROR and result.suggestion is not None:
            body["suggestion"] = result.suggestion
    return error_code_to_status(result.category), body


def result_from_body(status_code: int, body: Any) -> ExtractionResult:
    """
    Rebuild a result from a status code and decoded JSON body.

    Unknown shapes become PROVIDER_ERROR failures; this never raises.
    """
    if not isinstance(body, dict):
        return failure_for(ErrorCode.PROVIDER_ERROR, f"HTTP {status_code}: unexpected response body")

    if status_code == 200 and body.get("success") is True:
        try:
            return ExtractionSuccess(data=validate_extraction(body.get("data")))
        except MalformedOutputError as e:
            return failure_for(ErrorCode.MALFORMED_OUTPUT, e.message)

    error = body.get("error")
    message = error if isinstance(error, str) and error else f"HTTP {status_code}"
    details = _optional_str(body.get("details"))

    if status_code == 400:
        return failure_for(ErrorCode.INVALID_INPUT, message)
    if status_code == 401:
        instructions = _optional_str(body.get("instructions")) or AUTH_REMEDIATION.instructions
        return ExtractionFailure(
            category=ErrorCode.AUTH_MISSING,
            message=message,
            remediation=AUTH_REMEDIATION.model_copy(update={"instructions": instructions}),
        )
    if status_code == 429:
        return ExtractionFailure(category=ErrorCode.RATE_LIMITED, message=message, details=details)
    if status_code == 504:
        return ExtractionFailure(category=ErrorCode.TRANSPORT_ERROR, message=message, details=details)
    if status_code == 500 and message == MALFORMED_MESSAGE and details is None:
        return failure_for(ErrorCode.MALFORMED_OUTPUT)

    return ExtractionFailure(
        category=ErrorCode.PROVIDER_ERROR,
        message=message,
        details=details,
        suggestion=_optional_str(body.get("suggestion")),
    )


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)
