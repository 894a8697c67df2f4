"""
Gemini Client - Google Gemini API client.

This is the SINGLE source of truth for all Gemini API interactions.

Authentication:
- API key passed in through GeminiConfig (normally GOOGLE_GEMINI_API_KEY)
- A missing key fails at call time with GeminiAuthError, never at construction

Features:
- Async operations (SDK calls run in a worker thread)
- Client-side rate limiting (60 RPM default)
- Schema-constrained JSON output with an inline image
- No automatic retries; callers decide whether to try again
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from .models import GeminiConfig, GeminiResponse, InlineImage

logger = logging.getLogger(__name__)

__all__ = [
    "GeminiClient",
    "GeminiAPIError",
    "GeminiAuthError",
    "GeminiTimeoutError",
    "RateLimitError",
]


class GeminiAPIError(Exception):
    """Gemini API error."""

    pass


class RateLimitError(GeminiAPIError):
    """Rate limit exceeded."""

    pass


class GeminiAuthError(GeminiAPIError):
    """API key missing or rejected."""

    pass


class GeminiTimeoutError(GeminiAPIError, TimeoutError):
    """Request deadline exceeded."""

    pass


class GeminiClient:
    """
    Gemini API client for structured extraction from images.

    Example:
        >>> client = GeminiClient(GeminiConfig(api_key="..."))
        >>> response = await client.generate_structured(
        ...     prompt="Extract the bill fields.",
        ...     image=InlineImage(mime_type="image/png", data=png_bytes),
        ...     response_schema={"type": "object", "properties": {...}},
        ... )
        >>> print(response.text)
    """

    def __init__(
        self,
        config: GeminiConfig | None = None,
    ) -> None:
        """
        Initialize Gemini client.

        Args:
            config: Client configuration. Uses defaults if None.
        """
        self.config = config or GeminiConfig()

        if self.config.api_key:
            genai.configure(api_key=self.config.api_key)

        # Rate limiting state
        self._request_times: list[float] = []
        self._rate_lock = asyncio.Lock()

        # Model instances keyed by system instruction (lazy loaded)
        self._models: dict[str | None, genai.GenerativeModel] = {}

        logger.info(
            "GeminiClient initialized: model=%s, api_key=%s",
            self.config.model,
            "set" if self.config.api_key else "missing",
        )

    @property
    def model(self) -> str:
        """Configured model name."""
        return self.config.model

    @property
    def has_credentials(self) -> bool:
        """Whether an API key was supplied."""
        return bool(self.config.api_key)

    def _get_model(self, system_instruction: str | None = None) -> genai.GenerativeModel:
        """Get or create model instance."""
        if system_instruction not in self._models:
            self._models[system_instruction] = genai.GenerativeModel(
                model_name=self.config.model,
                system_instruction=system_instruction,
            )
        return self._models[system_instruction]

    async def acquire_slot(self) -> None:
        """Wait until the per-minute request budget allows one more call."""
        async with self._rate_lock:
            now = time.time()
            # Remove requests older than 1 minute
            self._request_times = [t for t in self._request_times if now - t < 60]

            if len(self._request_times) >= self.config.rate_limit_rpm:
                wait_time = 60 - (now - self._request_times[0])
                if wait_time > 0:
                    logger.warning("Rate limit reached, waiting %.1fs", wait_time)
                    await asyncio.sleep(wait_time)

            self._request_times.append(now)

    async def generate_structured(
        self,
        prompt: str,
        image: InlineImage,
        response_schema: dict[str, Any],
        system_instruction: str | None = None,
        pace: bool = True,
    ) -> GeminiResponse | None:
        """
        Generate JSON constrained to a schema from a prompt and one image.

        Exactly one request is sent per call.

        Args:
            prompt: User prompt
            image: Image to send inline
            response_schema: OpenAPI-style schema the output must follow
            system_instruction: Optional system instruction
            pace: Wait for a rate-limit slot first. Callers that already
                awaited acquire_slot() pass False

        Returns:
            GeminiResponse with the JSON text, or None when the model
            returned no candidate text at all

        Raises:
            GeminiAuthError: API key missing or rejected
            RateLimitError: Rate limit or quota exceeded
            GeminiTimeoutError: Request deadline exceeded
            GeminiAPIError: Any other API failure
        """
        if not self.has_credentials:
            raise GeminiAuthError(
                "Gemini API key is missing. Set GOOGLE_GEMINI_API_KEY in .env"
            )

        if pace:
            await self.acquire_slot()

        generation_config = genai.GenerationConfig(
            temperature=self.config.temperature,
            max_output_tokens=self.config.max_output_tokens,
            response_mime_type="application/json",
            response_schema=response_schema,
        )

        try:
            model = self._get_model(system_instruction)
            response = await asyncio.to_thread(
                model.generate_content,
                [prompt, {"mime_type": image.mime_type, "data": image.data}],
                generation_config=generation_config,
                request_options={"timeout": self.config.timeout_seconds},
            )
        except (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied) as e:
            raise GeminiAuthError(f"Invalid API key: {e}") from e
        except (google_exceptions.ResourceExhausted, google_exceptions.TooManyRequests) as e:
            raise RateLimitError(f"Rate limit exceeded: {e}") from e
        except google_exceptions.DeadlineExceeded as e:
            raise GeminiTimeoutError(f"Gemini request timed out: {e}") from e
        except Exception as e:
            raise GeminiAPIError(f"Gemini API error: {e}") from e

        if not getattr(response, "candidates", None):
            logger.warning("Gemini returned no candidates")
            return None

        try:
            text = response.text
        except ValueError:
            # Candidate present but without text parts (e.g. blocked by safety)
            logger.warning("Gemini candidate has no text parts")
            return None

        if not text or not text.strip():
            return None

        # Get usage stats
        usage = getattr(response, "usage_metadata", None)
        prompt_tokens = getattr(usage, "prompt_token_count", 0) if usage else 0
        completion_tokens = getattr(usage, "candidates_token_count", 0) if usage else 0

        return GeminiResponse(
            text=text,
            model=self.config.model,
            prompt_tokens=prompt_tokens or 0,
            completion_tokens=completion_tokens or 0,
            total_tokens=(prompt_tokens or 0) + (completion_tokens or 0),
        )
