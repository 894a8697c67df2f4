"""
Session Domain - Client-side extraction attempts.

This domain handles:
- The idle/uploading/analyzing/done/failed state machine
- Last-selected-image-wins invalidation of stale attempts
- Transports to an in-process gateway, local OCR, or a remote API
"""

from .contracts import ExtractionTransport
from .models import ExtractionSession, ImageSource, SessionStatus
from .orchestrator import ExtractionOrchestrator, SessionObserver
from .transports import GatewayTransport, HttpExtractionTransport, LocalOcrTransport

__all__ = [
    # Contracts
    "ExtractionTransport",
    # Models
    "ExtractionSession",
    "ImageSource",
    "SessionStatus",
    # Orchestration
    "ExtractionOrchestrator",
    "SessionObserver",
    # Transports
    "GatewayTransport",
    "LocalOcrTransport",
    "HttpExtractionTransport",
]
