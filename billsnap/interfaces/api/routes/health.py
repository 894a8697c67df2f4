"""
Health Routes - System health and status endpoints.
"""

from typing import Any

from fastapi import APIRouter

from billsnap import __version__
from billsnap.config import get_settings

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "billsnap",
        "gemini_configured": get_settings().gemini_api_key is not None,
    }


@router.get("/api")
async def api_info() -> dict[str, Any]:
    """API info endpoint."""
    return {
        "name": "BillSnap API",
        "version": __version__,
        "description": "Receipt and bill image to structured expense data",
        "docs": "/docs",
        "endpoints": ["/extract", "/ocr"],
    }
