"""
Abstract base class for note curators.

A curator is the restructuring / refine capability used by the curation
scheduler.  Keeping it behind an interface lets the scheduler be tested
with a mock and lets prompts change without touching scheduling logic.
"""

from abc import ABC, abstractmethod

from auranotes.core.models import NoteStyle


class BaseCurator(ABC):
    """Interface that every curator must implement."""

    @abstractmethod
    async def curate(
        self,
        transcript: str,
        previous_context: str | None = None,
        style: NoteStyle = NoteStyle.default,
    ) -> str:
        """Restructure a transcript into notes.

        Args:
            transcript: The full raw transcript so far.
            previous_context: The last curated version of the note, if any.
            style: Requested tone and layout.

        Returns:
            The new curated content ("" for a blank transcript).

        Raises:
            CurationAuthError: The LLM provider rejected the credentials.
            MalformedResultError: The LLM returned unusable content.
            CurationError: Any other failure.
        """

    @abstractmethod
    async def refine(self, curated: str, instructions: str) -> str:
        """Rewrite already-curated content following user instructions.

        Raises:
            CurationAuthError: The LLM provider rejected the credentials.
            MalformedResultError: The LLM returned unusable content.
            CurationError: Any other failure.
        """
