"""
Extraction Contracts - Interfaces for extraction domain.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import ExtractionResult


@runtime_checkable
class Extractor(Protocol):
    """
    Contract for anything that turns an image into an ExtractionResult.

    Both ExtractionGateway (Gemini) and LocalOcrExtractor (Tesseract)
    satisfy it.

    Example:
        >>> class MyExtractor:
        ...     async def extract(self, image: str | None, mime_type: str | None = None) -> ExtractionResult:
        ...         ...
        >>> assert isinstance(MyExtractor(), Extractor)
    """

    async def extract(
        self,
        image: str | None,
        mime_type: str | None = None,
    ) -> ExtractionResult:
        """
        Extract bill fields from an image.

        Args:
            image: Data URI, or bare base64 combined with mime_type
            mime_type: Content type used when image is bare base64

        Returns:
            ExtractionSuccess or ExtractionFailure; never raises for
            provider failures
        """
        ...
