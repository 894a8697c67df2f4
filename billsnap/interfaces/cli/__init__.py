"""
CLI Interface - Command-line tools for BillSnap.

Provides commands for:
- Gemini extraction (in-process or against a running API)
- Local OCR extraction
- Running the API server
"""

from .main import app, main

__all__ = ["app", "main"]
