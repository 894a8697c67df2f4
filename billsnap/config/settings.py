"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables and .env files.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Gemini
    # Missing key is not a startup error; extraction reports AUTH_MISSING instead.
    google_gemini_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "google_gemini_api_key",
            "google_generative_ai_api_key",
        ),
    )
    gemini_model: str = "gemini-2.0-flash"
    gemini_temperature: float = 0.0
    gemini_rate_limit_rpm: int = 60

    # Extraction
    extraction_timeout_seconds: float = 60.0
    max_image_bytes: int = 10 * 1024 * 1024  # 10 MB

    # Local OCR
    tesseract_cmd: str | None = None
    tesseract_lang: str = "eng"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def gemini_api_key(self) -> str | None:
        """Plain API key, or None when unset or blank."""
        if self.google_gemini_api_key is None:
            return None
        return self.google_gemini_api_key.get_secret_value().strip() or None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
