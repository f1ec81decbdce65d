"""
Speech capability backed by a client-side recognizer.

The browser (or any other client) runs speech recognition locally and
relays each result over the ``/ws/capture`` WebSocket.  This source turns
those frames into ``RecognitionEvent`` callbacks while capture is running
and remembers whether the client reported that microphone access was
refused.
"""

import logging

from auranotes.core.exceptions import PermissionDeniedError
from auranotes.services.capture.base import (
    ERROR_NOT_ALLOWED,
    BaseSpeechSource,
    ErrorHandler,
    EventHandler,
    RecognitionEvent,
)

logger = logging.getLogger(__name__)


class RelayedSpeechSource(BaseSpeechSource):
    """Speech capability fed by results pushed from a connected client."""

    def __init__(self) -> None:
        self._on_event: EventHandler | None = None
        self._on_error: ErrorHandler | None = None
        self._active = False
        self._denied = False

    @property
    def active(self) -> bool:
        return self._active

    @property
    def denied(self) -> bool:
        return self._denied

    async def start(self, on_event: EventHandler, on_error: ErrorHandler) -> None:
        if self._denied:
            raise PermissionDeniedError()
        self._on_event = on_event
        self._on_error = on_error
        self._active = True

    async def stop(self) -> None:
        self._active = False

    def deliver(self, text: str, is_final: bool) -> bool:
        """Forward one recognizer result. Returns False if it was dropped."""
        if not self._active or self._on_event is None:
            logger.debug("Relayed result dropped; capture is not running")
            return False
        self._on_event(RecognitionEvent(text=text, is_final=is_final))
        return True

    def report_error(self, code: str) -> None:
        """Forward a recognizer error code reported by the client."""
        if code == ERROR_NOT_ALLOWED:
            self._denied = True
            was_active = self._active
            self._active = False
            if not was_active:
                return
        if self._on_error is not None:
            self._on_error(code)

    def grant(self) -> None:
        """Record that the client has (re)obtained microphone access."""
        self._denied = False
