"""
CRUD repository for the AuraNotes ``notes`` table.

``NoteRepository`` receives an ``AsyncSession`` and provides all
data-access methods.  It calls ``flush()`` rather than ``commit()`` so
that transaction boundaries are controlled by the caller (typically
:func:`get_session`).
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auranotes.core.exceptions import NoteNotFoundError
from auranotes.services.storage.models_db import Note

logger = logging.getLogger(__name__)


class NoteRepository:
    """Data-access layer for notes.

    Args:
        session: An active SQLAlchemy ``AsyncSession``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Create / read
    # ------------------------------------------------------------------

    async def create_note(
        self,
        note_id: str,
        title: str,
        owner_id: str = "local",
        raw_transcript: str = "",
        curated_content: str = "",
        style: str = "default",
        created_at: datetime | None = None,
    ) -> Note:
        """Insert and return a new note."""
        note = Note(
            id=note_id,
            owner_id=owner_id,
            title=title,
            raw_transcript=raw_transcript,
            curated_content=curated_content,
            style=style,
            created_at=created_at or datetime.now(UTC),
        )
        self._session.add(note)
        await self._session.flush()
        return note

    async def get_note(self, note_id: str) -> Note:
        """Return a note by ID or raise :class:`NoteNotFoundError`."""
        note = await self._session.get(Note, note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return note

    async def list_notes(
        self,
        owner_id: str | None = None,
        limit: int = 200,
        offset: int = 0,
    ) -> list[Note]:
        """Return notes newest first, optionally filtered by *owner_id*."""
        stmt = select(Note).order_by(Note.created_at.desc()).limit(limit).offset(offset)
        if owner_id is not None:
            stmt = stmt.where(Note.owner_id == owner_id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Update / delete
    # ------------------------------------------------------------------

    async def update_content(
        self,
        note_id: str,
        raw_transcript: str,
        curated_content: str,
    ) -> Note:
        """Overwrite the raw transcript and curated content of a note."""
        note = await self.get_note(note_id)
        note.raw_transcript = raw_transcript
        note.curated_content = curated_content
        await self._session.flush()
        return note

    async def update_artifacts(
        self,
        note_id: str,
        mind_map_mermaid: str | None = None,
        flashcards: list[dict] | None = None,
    ) -> Note:
        """Store derived artifacts; ``None`` leaves a field unchanged."""
        note = await self.get_note(note_id)
        if mind_map_mermaid is not None:
            note.mind_map_mermaid = mind_map_mermaid
        if flashcards is not None:
            note.flashcards = flashcards
        await self._session.flush()
        return note

    async def delete_note(self, note_id: str) -> None:
        """Delete a note."""
        note = await self.get_note(note_id)
        await self._session.delete(note)
        await self._session.flush()
