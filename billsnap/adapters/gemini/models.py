"""
Gemini Models - Request/Response types for Gemini API.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class GeminiConfig(BaseModel):
    """Configuration for Gemini client."""

    api_key: str | None = Field(default=None, repr=False)
    model: str = Field(default="gemini-2.0-flash")
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=8192)
    timeout_seconds: float = Field(default=60.0, gt=0)
    rate_limit_rpm: int = Field(default=60)

    model_config = {"frozen": True}


class InlineImage(BaseModel):
    """Image bytes sent inline with a request."""

    mime_type: str
    data: bytes

    model_config = {"frozen": True}


class GeminiResponse(BaseModel):
    """Generic Gemini API response."""

    text: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    finish_reason: str = "STOP"
