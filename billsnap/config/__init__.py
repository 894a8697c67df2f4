"""
Configuration - Application settings, error taxonomy, and logging setup.
"""

from .errors import (
    AuthMissingError,
    BillSnapError,
    ErrorCode,
    ExtractionInProgressError,
    InvalidInputError,
    MalformedOutputError,
    ProviderError,
    RateLimitedError,
    TransportError,
    error_code_to_status,
)
from .logging import setup_logging
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "BillSnapError",
    "InvalidInputError",
    "AuthMissingError",
    "RateLimitedError",
    "MalformedOutputError",
    "ProviderError",
    "TransportError",
    "ExtractionInProgressError",
    "error_code_to_status",
    # Logging
    "setup_logging",
]
