"""
Abstract base class for speech capabilities.

A speech capability runs a recognizer somewhere (in the browser, on a
device, in a server-side engine) and reports results as interim or final
``RecognitionEvent`` objects.  The capture controller only depends on this
interface.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

# Recognizer error codes with special meaning for the controller
ERROR_NOT_ALLOWED = "not-allowed"
ERROR_NO_SPEECH = "no-speech"


@dataclass(frozen=True)
class RecognitionEvent:
    """One recognizer result.

    Interim results carry the recognizer's full current guess for the
    segment, so each one supersedes the previous.
    """

    text: str
    is_final: bool


EventHandler = Callable[[RecognitionEvent], None]
ErrorHandler = Callable[[str], None]


class BaseSpeechSource(ABC):
    """Interface that every speech capability must implement."""

    @abstractmethod
    async def start(self, on_event: EventHandler, on_error: ErrorHandler) -> None:
        """Begin recognition and deliver results to *on_event*.

        Args:
            on_event: Called synchronously for every interim or final result.
            on_error: Called with a recognizer error code (e.g. "network").

        Raises:
            PermissionDeniedError: If access to the microphone is refused.
        """

    @abstractmethod
    async def stop(self) -> None:
        """Halt recognition. No events are delivered after this returns."""
