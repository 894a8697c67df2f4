"""
Extraction Orchestrator - Drives one session through its attempt lifecycle.

    idle -> uploading -> analyzing -> done | failed

Selecting a new image starts a new generation. An attempt that finishes
after its generation was superseded is discarded (last selected image wins).
Cancellation is state invalidation only; the in-flight call is not aborted.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from billsnap.adapters.tesseract import OcrEvent
from billsnap.config.errors import ErrorCode, ExtractionInProgressError, InvalidInputError
from billsnap.domains.extraction import classify, encode_data_uri, failure_for

from .contracts import ExtractionTransport
from .models import ExtractionSession, ImageSource, SessionStatus

logger = logging.getLogger(__name__)

__all__ = ["ExtractionOrchestrator", "SessionObserver"]

SessionObserver = Callable[[ExtractionSession], None]


class ExtractionOrchestrator:
    """
    Client-side state machine for extraction attempts.

    Example:
        >>> orchestrator = ExtractionOrchestrator(GatewayTransport(gateway))
        >>> orchestrator.subscribe(lambda s: print(s.status.label))
        >>> orchestrator.select_image(ImageSource(path=Path("receipt.jpg")))
        >>> session = await orchestrator.run()
        >>> session.status
        <SessionStatus.DONE: 'done'>
    """

    def __init__(self, transport: ExtractionTransport) -> None:
        self._transport = transport
        self._session = ExtractionSession()
        self._observers: list[SessionObserver] = []

    @property
    def session(self) -> ExtractionSession:
        return self._session

    def subscribe(self, observer: SessionObserver) -> Callable[[], None]:
        """
        Register an observer for every session change.

        Returns:
            Function that removes the observer
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def select_image(self, source: ImageSource) -> ExtractionSession:
        """
        Start a new session for an image.

        Any attempt still in flight for the previous image loses the right
        to change session state.

        Raises:
            InvalidInputError: Source is not an image
        """
        mime_type = source.resolved_mime_type
        if not mime_type or not mime_type.startswith("image/"):
            raise InvalidInputError(
                "Please select an image file",
                {"name": source.name, "mime_type": mime_type},
            )
        self._replace(
            ExtractionSession(generation=self._session.generation + 1, source=source)
        )
        logger.debug("Selected %s (generation %d)", source.name, self._session.generation)
        return self._session

    def reset(self) -> ExtractionSession:
        """Drop the current image and invalidate any attempt in flight."""
        self._replace(ExtractionSession(generation=self._session.generation + 1))
        return self._session

    async def run(self) -> ExtractionSession:
        """
        Run one extraction attempt for the selected image.

        Returns:
            Session snapshot after the attempt; if the attempt was superseded
            this is the newer session, untouched by the stale result

        Raises:
            InvalidInputError: No image selected
            ExtractionInProgressError: An attempt is uploading or analyzing
        """
        session = self._session
        if session.source is None:
            raise InvalidInputError("No image provided")
        if session.status.busy:
            raise ExtractionInProgressError(
                "Extraction already in progress",
                {"status": session.status.value},
            )

        generation = session.generation
        source = session.source
        mime_type = source.resolved_mime_type or "image/jpeg"
        self._update(generation, status=SessionStatus.UPLOADING, result=None, progress=None)

        try:
            data = await self._read(source)
        except InvalidInputError as e:
            self._update(
                generation,
                status=SessionStatus.FAILED,
                result=failure_for(ErrorCode.INVALID_INPUT, e.message),
            )
            return self._session

        if not self._update(generation, status=SessionStatus.ANALYZING):
            return self._session

        def on_progress(event: OcrEvent) -> None:
            self._update(generation, progress=event)

        try:
            result = await self._transport.extract(
                encode_data_uri(data, mime_type),
                mime_type,
                on_progress=on_progress,
            )
        except Exception as e:
            logger.exception("Transport raised for generation %d", generation)
            result = classify(e)
        self._update(
            generation,
            status=SessionStatus.DONE if result.ok else SessionStatus.FAILED,
            result=result,
        )
        return self._session

    async def _read(self, source: ImageSource) -> bytes:
        if source.data is not None:
            data = source.data
        else:
            assert source.path is not None
            try:
                data = await asyncio.to_thread(source.path.read_bytes)
            except OSError as e:
                raise InvalidInputError(
                    "Could not read image file",
                    {"path": str(source.path), "reason": str(e)},
                ) from e
        if not data:
            raise InvalidInputError("No image provided")
        return data

    def _update(self, generation: int, **changes: Any) -> bool:
        """Apply changes if generation is still current. Returns False for stale attempts."""
        if generation != self._session.generation:
            logger.info(
                "Discarding stale update for generation %d (current %d)",
                generation,
                self._session.generation,
            )
            return False
        self._replace(self._session.model_copy(update=changes))
        return True

    def _replace(self, session: ExtractionSession) -> None:
        self._session = session
        for observer in list(self._observers):
            observer(session)
