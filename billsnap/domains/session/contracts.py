"""
Session Contracts - How the orchestrator reaches an extractor.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from billsnap.domains.extraction import ExtractionResult, ProgressCallback


@runtime_checkable
class ExtractionTransport(Protocol):
    """
    Carries one encoded image to an extractor and returns its result.

    Implementations never raise for provider or network failures; those
    come back as ExtractionFailure values.
    """

    async def extract(
        self,
        image: str,
        mime_type: str,
        on_progress: ProgressCallback | None = None,
    ) -> ExtractionResult:
        """
        Run one extraction.

        Args:
            image: Data URI of the image
            mime_type: Image content type
            on_progress: Receives OCR progress events, if the transport has any

        Returns:
            ExtractionSuccess or ExtractionFailure
        """
        ...
