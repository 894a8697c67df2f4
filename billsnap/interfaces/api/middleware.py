"""
API Middleware - Request tracing and the JSON error envelope.

Every response carries X-Request-ID and X-Response-Time-Ms. Exceptions that
escape a route are rendered in the same flat shape as extraction failures:

    {"error": "<message>", "details": "<optional>", "request_id": "<id>"}
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from billsnap.config.errors import BillSnapError, ErrorCode, error_code_to_status

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """Assign a request id, time the request and log one line per call."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request.state.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        start_time = time.perf_counter()

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Request-ID"] = request.state.request_id
        response.headers["X-Response-Time-Ms"] = f"{elapsed_ms:.2f}"
        logger.info(
            "%s %s -> %d in %.1fms [%s]",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request.state.request_id,
        )
        return response


class ErrorEnvelopeMiddleware(BaseHTTPMiddleware):
    """Render exceptions escaping the routes as flat JSON error bodies."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except BillSnapError as e:
            logger.error("%s on %s: %s", e.code.value, request.url.path, e.message)
            return _envelope(request, error_code_to_status(e.code), e.to_body())
        except Exception:
            logger.exception("Unhandled error on %s", request.url.path)
            return _envelope(
                request,
                error_code_to_status(ErrorCode.INTERNAL_ERROR),
                {"error": INTERNAL_ERROR_MESSAGE},
            )


def _envelope(request: Request, status_code: int, body: dict) -> JSONResponse:
    body["request_id"] = getattr(request.state, "request_id", None)
    return JSONResponse(status_code=status_code, content=body)
