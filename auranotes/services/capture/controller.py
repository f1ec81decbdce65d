"""
Capture lifecycle state machine.

``RecognitionController`` owns one speech capability and walks it through
idle -> listening -> paused -> idle.  Recognition results are folded into a
``TranscriptBuffer``; the controller never persists anything itself.
"""

import logging
from collections.abc import Callable

from auranotes.core.exceptions import InvalidCaptureStateError, PermissionDeniedError
from auranotes.core.models import CaptureStatus
from auranotes.services.capture.base import (
    ERROR_NO_SPEECH,
    ERROR_NOT_ALLOWED,
    BaseSpeechSource,
    RecognitionEvent,
)
from auranotes.services.capture.buffer import TranscriptBuffer

logger = logging.getLogger(__name__)


class RecognitionController:
    """Drives a speech capability and feeds its results into a buffer.

    Args:
        source: The speech capability to control.
        buffer: Transcript buffer receiving recognition results.
        on_interrupted: Called when the capability revokes access mid-session
            and the controller has dropped back to idle on its own.
    """

    def __init__(
        self,
        source: BaseSpeechSource,
        buffer: TranscriptBuffer,
        on_interrupted: Callable[[], None] | None = None,
    ) -> None:
        self._source = source
        self._buffer = buffer
        self._on_interrupted = on_interrupted
        self._listeners: list[Callable[[RecognitionEvent], None]] = []
        self.status = CaptureStatus.idle
        self.permission_denied = False

    @property
    def source(self) -> BaseSpeechSource:
        return self._source

    def add_listener(self, listener: Callable[[RecognitionEvent], None]) -> None:
        """Register a callback invoked after each event reaches the buffer."""
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Begin listening.

        Raises:
            InvalidCaptureStateError: If capture is not idle.
            PermissionDeniedError: If the capability refuses access.
        """
        self._require(CaptureStatus.idle, action="start")
        await self._start_source()
        self.status = CaptureStatus.listening
        logger.info("Capture started")

    async def pause(self) -> None:
        """Halt recognition, keep everything heard so far, and wait."""
        self._require(CaptureStatus.listening, action="pause")
        await self._source.stop()
        self._buffer.fold()
        self.status = CaptureStatus.paused
        logger.info("Capture paused")

    async def resume(self) -> None:
        """Restart recognition after a pause."""
        self._require(CaptureStatus.paused, action="resume")
        await self._start_source()
        self.status = CaptureStatus.listening
        logger.info("Capture resumed")

    async def stop(self) -> None:
        """Halt recognition, fold the provisional guess, and go idle."""
        self._require(CaptureStatus.listening, CaptureStatus.paused, action="stop")
        if self.status == CaptureStatus.listening:
            await self._source.stop()
        self._buffer.fold()
        self.status = CaptureStatus.idle
        logger.info("Capture stopped")

    # ------------------------------------------------------------------
    # Capability callbacks
    # ------------------------------------------------------------------

    def _handle_event(self, event: RecognitionEvent) -> None:
        if self.status != CaptureStatus.listening:
            logger.debug("Dropping recognition event received while %s", self.status)
            return
        self._buffer.apply(event)
        for listener in self._listeners:
            listener(event)

    def _handle_error(self, code: str) -> None:
        if code == ERROR_NO_SPEECH:
            return
        if code != ERROR_NOT_ALLOWED:
            logger.warning("Speech recognition error (session continues): %s", code)
            return

        logger.warning("Microphone access revoked during capture")
        self.permission_denied = True
        if self.status == CaptureStatus.idle:
            return
        self._buffer.fold()
        self.status = CaptureStatus.idle
        if self._on_interrupted is not None:
            self._on_interrupted()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _start_source(self) -> None:
        try:
            await self._source.start(self._handle_event, self._handle_error)
        except PermissionDeniedError:
            self.permission_denied = True
            logger.warning("Microphone access denied")
            raise
        self.permission_denied = False

    def _require(self, *allowed: CaptureStatus, action: str) -> None:
        if self.status not in allowed:
            raise InvalidCaptureStateError(action=action, status=self.status.value)
