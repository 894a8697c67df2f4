"""
FastAPI Main Application - BillSnap API entry point.

Run with: uvicorn billsnap.interfaces.api.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from billsnap import __version__
from billsnap.config import get_settings

from .middleware import ErrorEnvelopeMiddleware, RequestTracingMiddleware
from .routes import extract, health

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info("Starting BillSnap API...")
    logger.info("  Model: %s", settings.gemini_model)
    if settings.gemini_api_key is None:
        logger.warning("  GOOGLE_GEMINI_API_KEY is not set; /extract will return 401 until it is")

    yield

    logger.info("Shutting down BillSnap API...")


async def _invalid_body_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are INVALID_INPUT (400), not 422."""
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": str(exc.errors())},
    )


def create_app() -> FastAPI:
    """Create FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="BillSnap API",
        description="Receipt and bill image to structured expense data",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # First added is innermost: errors are rendered inside the traced span
    app.add_middleware(ErrorEnvelopeMiddleware)
    app.add_middleware(RequestTracingMiddleware)

    # CORS (framework middleware)
    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8000",
    ]
    if settings.api_debug:
        allowed_origins.append("http://localhost:*")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    app.add_exception_handler(RequestValidationError, _invalid_body_handler)

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(extract.router, tags=["Extraction"])

    return app


# Create app instance
app = create_app()
