"""
Transcript buffer for live recognition results.

Keeps the settled part of the transcript (``final``) apart from the
recognizer's current guess (``provisional``).  Only ``final`` is durable:
it grows by append and is cleared only by ``reset()`` when a new note
starts recording.
"""

from auranotes.services.capture.base import RecognitionEvent


class TranscriptBuffer:
    """Merges interim and final recognition results into one transcript.

    Each finalized segment is stored followed by a single space, so a final
    event always grows the transcript by ``len(text) + 1`` regardless of how
    many interim guesses preceded it.
    """

    def __init__(self) -> None:
        self._final = ""
        self._provisional = ""

    @property
    def final(self) -> str:
        return self._final

    @property
    def provisional(self) -> str:
        return self._provisional

    def on_event(self, text: str, is_final: bool) -> None:
        """Apply one recognizer result.

        Args:
            text: The recognized text for the current segment.
            is_final: True when the recognizer will not revise *text*.
        """
        if is_final:
            self._final += text + " "
            self._provisional = ""
        else:
            # Interim results re-send the whole guess; replace, never append
            self._provisional = text

    def apply(self, event: RecognitionEvent) -> None:
        """Convenience wrapper taking a ``RecognitionEvent``."""
        self.on_event(event.text, event.is_final)

    def fold(self) -> None:
        """Move the provisional guess into ``final`` (used on pause / stop)."""
        if self._provisional:
            self._final += self._provisional + " "
            self._provisional = ""

    def snapshot(self) -> str:
        """Return the externally visible transcript."""
        return self._final + self._provisional

    def reset(self) -> None:
        """Clear everything. Only called when a brand-new note begins."""
        self._final = ""
        self._provisional = ""

    def __len__(self) -> int:
        return len(self._final) + len(self._provisional)
