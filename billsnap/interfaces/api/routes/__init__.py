"""
API Routes.
"""

from . import extract, health

__all__ = ["health", "extract"]
