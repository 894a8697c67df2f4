"""
Session Transports - In-process and HTTP routes to an extractor.
"""

from __future__ import annotations

import logging

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from billsnap.config.errors import ErrorCode
from billsnap.domains.extraction import (
    ExtractionGateway,
    ExtractionResult,
    LocalOcrExtractor,
    ProgressCallback,
    failure_for,
    result_from_body,
)

logger = logging.getLogger(__name__)

__all__ = ["GatewayTransport", "LocalOcrTransport", "HttpExtractionTransport"]


class GatewayTransport:
    """Calls an ExtractionGateway in the same process."""

    def __init__(self, gateway: ExtractionGateway) -> None:
        self._gateway = gateway

    async def extract(
        self,
        image: str,
        mime_type: str,
        on_progress: ProgressCallback | None = None,
    ) -> ExtractionResult:
        return await self._gateway.extract(image, mime_type)


class LocalOcrTransport:
    """Runs local OCR in the same process and forwards its progress events."""

    def __init__(self, extractor: LocalOcrExtractor) -> None:
        self._extractor = extractor

    async def extract(
        self,
        image: str,
        mime_type: str,
        on_progress: ProgressCallback | None = None,
    ) -> ExtractionResult:
        return await self._extractor.extract(image, mime_type, on_progress=on_progress)


class HttpExtractionTransport:
    """
    Posts images to a running BillSnap API.

    Connection failures are retried only when max_attempts > 1; every other
    outcome is returned after one request.

    Example:
        >>> async with HttpExtractionTransport("http://localhost:8000") as transport:
        ...     result = await transport.extract(data_uri, "image/jpeg")
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 70.0,
        max_attempts: int = 1,
        retry_wait_seconds: float = 0.5,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize transport.

        Args:
            base_url: API root, e.g. "http://localhost:8000"
            timeout: Per-request timeout in seconds
            max_attempts: Total tries on connection failure (1 = no retry)
            retry_wait_seconds: Base of the exponential backoff between tries
            client: Pre-built client (tests inject one with a MockTransport)
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._owns_client = client is None
        self._max_attempts = max_attempts
        self._retry_wait = retry_wait_seconds

    async def __aenter__(self) -> HttpExtractionTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _post(self, payload: dict[str, str]) -> httpx.Response:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._retry_wait, max=4),
            retry=retry_if_exception_type(httpx.ConnectError),
            reraise=True,
        )
        return await retrying(self._client.post, "/extract", json=payload)

    async def extract(
        self,
        image: str,
        mime_type: str,
        on_progress: ProgressCallback | None = None,
    ) -> ExtractionResult:
        try:
            response = await self._post({"image": image, "mimeType": mime_type})
        except httpx.TimeoutException as e:
            logger.warning("Extraction request timed out: %s", e)
            return failure_for(ErrorCode.TRANSPORT_ERROR, str(e) or "Request timed out")
        except httpx.TransportError as e:
            logger.warning("Extraction request failed: %s", e)
            return failure_for(ErrorCode.TRANSPORT_ERROR, str(e) or type(e).__name__)

        try:
            body = response.json()
        except ValueError:
            body = None
        logger.debug("Extraction response: status=%d", response.status_code)
        return result_from_body(response.status_code, body)
