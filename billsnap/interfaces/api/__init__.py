"""
API Interface - FastAPI REST API.

Exposes the extraction gateway over HTTP (POST /extract, POST /ocr).
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
