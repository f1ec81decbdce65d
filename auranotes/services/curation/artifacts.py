"""
Derived study artifacts: Mermaid mind maps and flashcard decks.

Both are generated on demand from a note's curated content and stored on
the note so they are only produced once per version the user asks for.
"""

import json
import logging

from auranotes.core.exceptions import (
    CurationAuthError,
    CurationError,
    LLMAuthError,
    MalformedResultError,
)
from auranotes.core.models import Flashcard
from auranotes.core.utils import strip_code_fences
from auranotes.services.llm.base import BaseLLM

logger = logging.getLogger(__name__)

MIND_MAP_SYSTEM_PROMPT = (
    "You convert notes into a Mermaid mind map.\n\n"
    "Rules:\n"
    "- Output ONLY Mermaid source, no markdown fences or extra text.\n"
    "- The first line must be exactly: mindmap\n"
    "- Use a single root node named after the main topic.\n"
    "- Keep node labels short (max 6 words) and avoid parentheses, quotes and colons."
)

FLASHCARDS_SYSTEM_PROMPT = (
    "You create study flashcards from notes.\n\n"
    "Rules:\n"
    "- Output ONLY valid JSON, no markdown fences or extra text.\n"
    '- Format: [{"id": "1", "front": "...", "back": "..."}, ...]\n'
    "- front: a short question or term. back: a concise answer.\n"
    "- Produce between 5 and 15 cards covering the key facts.\n"
    "- Preserve the original language of the notes."
)

_MERMAID_HEADERS = ("mindmap", "graph", "flowchart")


class ArtifactGenerator:
    """Generates mind maps and flashcards from curated notes."""

    def __init__(self, llm: BaseLLM) -> None:
        self._llm = llm

    async def _call_llm(self, prompt: str, system: str) -> str:
        """One LLM round trip; transient failures are retried by the provider."""
        return await self._llm.generate(prompt, system=system, temperature=0.3)

    async def _run(self, prompt: str, system: str, action: str) -> str:
        try:
            raw_response = await self._call_llm(prompt, system)
        except LLMAuthError as exc:
            raise CurationAuthError(detail=f"{action} rejected: {exc.detail}") from exc
        except Exception as exc:
            raise CurationError(detail=f"LLM call failed during {action}: {exc}") from exc
        return strip_code_fences(raw_response or "")

    async def mind_map(self, curated: str) -> str:
        """Return Mermaid mind-map source describing *curated*.

        Raises:
            MalformedResultError: If the response is not Mermaid source.
        """
        source = await self._run(f"Notes:\n{curated}", MIND_MAP_SYSTEM_PROMPT, "mind map")
        if not source.lower().startswith(_MERMAID_HEADERS):
            raise MalformedResultError(
                detail=f"Mind map is not Mermaid source: {source[:200]}"
            )
        return source

    async def flashcards(self, curated: str) -> list[Flashcard]:
        """Return a flashcard deck covering *curated*.

        Raises:
            MalformedResultError: If the response is not a JSON list of cards.
        """
        raw = await self._run(f"Notes:\n{curated}", FLASHCARDS_SYSTEM_PROMPT, "flashcards")
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MalformedResultError(
                detail=f"Invalid JSON for flashcards: {raw[:200]}"
            ) from exc

        if isinstance(data, dict):
            data = data.get("cards") or data.get("flashcards") or []
        if not isinstance(data, list):
            raise MalformedResultError(detail="Flashcards response is not a list")

        # Skip malformed entries from LLM
        cards: list[Flashcard] = []
        for item in data:
            if not isinstance(item, dict) or "front" not in item or "back" not in item:
                continue
            cards.append(
                Flashcard(
                    id=str(item.get("id") or len(cards) + 1),
                    front=str(item["front"]),
                    back=str(item["back"]),
                )
            )

        if not cards:
            raise MalformedResultError(detail="Flashcards response contained no cards")
        logger.debug("Generated %d flashcards", len(cards))
        return cards
