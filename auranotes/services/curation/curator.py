"""
LLM-backed note curation.

Turns a growing raw transcript into structured notes in one of several
styles, and rewrites curated notes on request.  Each call sends the whole
transcript together with the previous curated version so the model can
update the notes rather than start over.
"""

import logging

from auranotes.core.exceptions import (
    CurationAuthError,
    CurationError,
    LLMAuthError,
    MalformedResultError,
)
from auranotes.core.models import NoteStyle
from auranotes.services.curation.base import BaseCurator
from auranotes.services.llm.base import BaseLLM

logger = logging.getLogger(__name__)

STYLE_PROMPTS: dict[NoteStyle, str] = {
    NoteStyle.default: (
        "You are an expert note taker. Format the following transcript into clean "
        "bullet points with appropriate emojis to categorize sections. "
        "Keep it structured and easy to read."
    ),
    NoteStyle.academic: (
        "You are an academic research assistant. Format the following transcript into "
        "structured notes with headers, bullet points, and a summary. "
        "Maintain a formal tone."
    ),
    NoteStyle.creative: (
        "You are a creative writer. Turn the following transcript into a flowing "
        "narrative or prose. Capture the essence and emotion."
    ),
    NoteStyle.meeting: (
        "You are a secretary. Extract action items, key decisions, and attendees "
        "from the transcript. Use check boxes for tasks."
    ),
}

REFINE_SYSTEM_PROMPT = (
    "You are an expert editor. Rewrite the user's notes following their "
    "instructions exactly. Keep the Markdown formatting, keep every fact that "
    "the instructions do not ask you to remove, and output only the revised notes."
)


def _build_user_prompt(transcript: str, previous_context: str | None) -> str:
    """Build the curation prompt from the transcript and the previous notes.

    Args:
        transcript: The raw transcript so far.
        previous_context: The last curated notes, used for continuity.

    Returns:
        Formatted prompt string for the LLM.
    """
    context = f"Previous context:\n{previous_context}" if previous_context else ""
    return (
        f'Here is the current transcript segment:\n\n"{transcript}"\n\n'
        f"{context}\n\n"
        "Update the notes based on this new information."
    )


def _build_refine_prompt(curated: str, instructions: str) -> str:
    return f"Instructions:\n{instructions}\n\nNotes to revise:\n{curated}"


class NoteCurator(BaseCurator):
    """Curates and refines notes using an LLM provider."""

    def __init__(self, llm: BaseLLM) -> None:
        """Initialize with the configured LLM provider.

        Args:
            llm: An LLM provider implementing ``BaseLLM``.
        """
        self._llm = llm

    async def _call_llm(self, prompt: str, system: str) -> str:
        """One LLM round trip; transient failures are retried by the provider."""
        return await self._llm.generate(prompt, system=system)

    async def _run(self, prompt: str, system: str, action: str) -> str:
        """Call the LLM and map failures onto the curation error taxonomy."""
        try:
            raw_response = await self._call_llm(prompt, system)
        except LLMAuthError as exc:
            raise CurationAuthError(detail=f"{action} rejected: {exc.detail}") from exc
        except Exception as exc:
            raise CurationError(detail=f"LLM call failed during {action}: {exc}") from exc

        text = (raw_response or "").strip()
        if not text:
            raise MalformedResultError(detail=f"LLM returned empty content during {action}")
        return text

    async def curate(
        self,
        transcript: str,
        previous_context: str | None = None,
        style: NoteStyle = NoteStyle.default,
    ) -> str:
        """Restructure *transcript* into notes in the requested *style*."""
        if not transcript or not transcript.strip():
            return ""

        system = STYLE_PROMPTS.get(style, STYLE_PROMPTS[NoteStyle.default])
        prompt = _build_user_prompt(transcript, previous_context)
        logger.debug("Curating %d chars in style %s", len(transcript), style)
        return await self._run(prompt, system, action="curation")

    async def refine(self, curated: str, instructions: str) -> str:
        """Rewrite *curated* according to *instructions*."""
        prompt = _build_refine_prompt(curated, instructions)
        return await self._run(prompt, REFINE_SYSTEM_PROMPT, action="refine")
