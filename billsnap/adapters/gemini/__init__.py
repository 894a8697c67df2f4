"""
Gemini Adapter - Google Gemini API client.

This is the ONLY place that calls the Gemini API.
All domains use this adapter for model operations.
"""

from .client import (
    GeminiAPIError,
    GeminiAuthError,
    GeminiClient,
    GeminiTimeoutError,
    RateLimitError,
)
from .models import GeminiConfig, GeminiResponse, InlineImage

__all__ = [
    "GeminiClient",
    "GeminiConfig",
    "GeminiResponse",
    "InlineImage",
    "GeminiAPIError",
    "GeminiAuthError",
    "GeminiTimeoutError",
    "RateLimitError",
]
