"""
Result Classifier - Maps provider failures onto the error taxonomy.

Precedence over the raw error message:
    1. credential missing/invalid  -> AUTH_MISSING (with remediation)
    2. quota / rate limiting       -> RATE_LIMITED
    3. timeout / connection        -> TRANSPORT_ERROR
    4. anything else               -> PROVIDER_ERROR
"""

from __future__ import annotations

import logging
import re

from billsnap.config.errors import BillSnapError, ErrorCode

from .models import ExtractionFailure, Remediation

logger = logging.getLogger(__name__)

__all__ = [
    "AUTH_REMEDIATION",
    "NO_DATA_MESSAGE",
    "classify",
    "failure_for",
]

API_KEY_ENV = "GOOGLE_GEMINI_API_KEY"
API_KEY_URL = "https://aistudio.google.com/apikey"

NO_DATA_MESSAGE = "no data returned"
MALFORMED_MESSAGE = "Failed to extract data from image"
AUTH_MESSAGE = f"Invalid API key. Please check your {API_KEY_ENV} in .env"
RATE_LIMIT_MESSAGE = "API rate limit exceeded. Please try again later or upgrade your plan."
TRANSPORT_MESSAGE = "Could not reach the extraction model in time"
PROVIDER_MESSAGE = "Failed to process image with Gemini API"
LOCAL_OCR_SUGGESTION = "Please try again or use Basic OCR mode"

AUTH_REMEDIATION = Remediation(
    instructions=f"Get a new API key from {API_KEY_URL}",
    steps=[
        f"Create an API key at {API_KEY_URL}",
        f"Add {API_KEY_ENV}=<your key> to the .env file (or export it)",
        "Restart the server so the new key is loaded",
    ],
    links=[API_KEY_URL],
)

AUTH_PATTERN = re.compile(
    r"api[_ ]?key|credential|unauthenticated|unauthori[sz]ed|permission[_ ]denied",
    re.IGNORECASE,
)
RATE_LIMIT_PATTERN = re.compile(
    r"quota|rate[_ -]?limit|resource[_ ]?exhausted|too many requests|\b429\b",
    re.IGNORECASE,
)


def failure_for(code: ErrorCode, details: str | None = None) -> ExtractionFailure:
    """Build the canonical failure for a category."""
    if code == ErrorCode.AUTH_MISSING:
        return ExtractionFailure(
            category=code,
            message=AUTH_MESSAGE,
            details=details,
            remediation=AUTH_REMEDIATION,
        )
    if code == ErrorCode.RATE_LIMITED:
        return ExtractionFailure(category=code, message=RATE_LIMIT_MESSAGE, details=details)
    if code == ErrorCode.MALFORMED_OUTPUT:
        return ExtractionFailure(category=code, message=MALFORMED_MESSAGE, details=details)
    if code == ErrorCode.TRANSPORT_ERROR:
        return ExtractionFailure(
            category=code,
            message=TRANSPORT_MESSAGE,
            details=details,
            suggestion=LOCAL_OCR_SUGGESTION,
        )
    if code == ErrorCode.INVALID_INPUT:
        return ExtractionFailure(category=code, message=details or "Invalid image")
    return ExtractionFailure(
        category=ErrorCode.PROVIDER_ERROR,
        message=PROVIDER_MESSAGE,
        details=details or "Unknown error",
        suggestion=LOCAL_OCR_SUGGESTION,
    )


def classify(error: BaseException | None) -> ExtractionFailure:
    """
    Normalize any error raised while talking to the provider.

    BillSnapError instances keep their own category. None means the call
    finished without an error and without a result.
    """
    if error is None:
        return failure_for(ErrorCode.PROVIDER_ERROR, NO_DATA_MESSAGE)

    if isinstance(error, BillSnapError):
        failure = failure_for(error.code, error.message)
    else:
        message = str(error) or type(error).__name__
        if AUTH_PATTERN.search(message):
            failure = failure_for(ErrorCode.AUTH_MISSING, message)
        elif RATE_LIMIT_PATTERN.search(message):
            failure = failure_for(ErrorCode.RATE_LIMITED, message)
        elif isinstance(error, (TimeoutError, ConnectionError)):
            failure = failure_for(ErrorCode.TRANSPORT_ERROR, message)
        else:
            failure = failure_for(ErrorCode.PROVIDER_ERROR, message)

    logger.warning(
        "Extraction failed: category=%s error=%s",
        failure.category.value,
        type(error).__name__,
    )
    return failure
