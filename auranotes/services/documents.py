"""
In-memory authority over every note known to this process.

``DocumentState`` holds the current version of each note.  The capture
controller, curation scheduler and API mutate notes only through it, and
each mutation is mirrored to durable storage without waiting for the write.
"""

import logging
import uuid
from collections.abc import Callable
from datetime import UTC, datetime

from auranotes.core.exceptions import NoteNotFoundError
from auranotes.core.models import Flashcard, NoteDocument, NoteStyle
from auranotes.services.storage.persistence import PersistenceMirror

logger = logging.getLogger(__name__)


def new_note(
    title: str,
    owner_id: str,
    style: NoteStyle = NoteStyle.default,
    raw_transcript: str = "",
) -> NoteDocument:
    """Build a fresh note with a random id and empty curated content."""
    return NoteDocument(
        id=uuid.uuid4().hex,
        owner_id=owner_id,
        title=title,
        raw_transcript=raw_transcript,
        curated_content="",
        created_at=datetime.now(UTC),
        style=style,
    )


class DocumentState:
    """Versioned notes with fire-and-forget persistence.

    Args:
        mirror: Receives every mutation for durable storage. ``None`` keeps
            notes in memory only.
    """

    def __init__(self, mirror: PersistenceMirror | None = None) -> None:
        self._mirror = mirror
        self._notes: dict[str, NoteDocument] = {}
        self._delete_listeners: list[Callable[[str], None]] = []

    def add_delete_listener(self, listener: Callable[[str], None]) -> None:
        """Register a callback run with the note id right after a delete."""
        self._delete_listeners.append(listener)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, note_id: str) -> NoteDocument:
        """Return the note or raise :class:`NoteNotFoundError`."""
        note = self._notes.get(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return note

    def exists(self, note_id: str) -> bool:
        return note_id in self._notes

    def list_notes(self, owner_id: str | None = None) -> list[NoteDocument]:
        """Return notes newest first, optionally only those of *owner_id*."""
        notes = [n for n in self._notes.values() if owner_id is None or n.owner_id == owner_id]
        return sorted(notes, key=lambda n: n.created_at, reverse=True)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def hydrate(self, notes: list[NoteDocument]) -> None:
        """Load already-persisted notes without mirroring them back."""
        for note in notes:
            self._notes[note.id] = note
        logger.info("Loaded %d notes from storage", len(notes))

    def create(self, note: NoteDocument) -> NoteDocument:
        """Register a new note and persist it."""
        self._notes[note.id] = note
        if self._mirror is not None:
            self._mirror.save(note)
        logger.info("Created note %s (%r)", note.id, note.title)
        return note

    def update_transcript(self, note_id: str, text: str) -> NoteDocument:
        """Replace the raw transcript of a note."""
        note = self.get(note_id)
        note.raw_transcript = text
        self._touch(note)
        return note

    def update_curated(self, note_id: str, text: str) -> NoteDocument:
        """Replace the curated content of a note."""
        note = self.get(note_id)
        note.curated_content = text
        self._touch(note)
        return note

    def update_artifacts(
        self,
        note_id: str,
        mind_map_mermaid: str | None = None,
        flashcards: list[Flashcard] | None = None,
    ) -> NoteDocument:
        """Store derived artifacts; ``None`` leaves a field unchanged."""
        note = self.get(note_id)
        if mind_map_mermaid is not None:
            note.mind_map_mermaid = mind_map_mermaid
        if flashcards is not None:
            note.flashcards = flashcards
        note.version += 1
        if self._mirror is not None:
            self._mirror.patch_artifacts(note_id, mind_map_mermaid, flashcards)
        return note

    def delete(self, note_id: str) -> None:
        """Remove a note and tell listeners so pending work for it is dropped."""
        self.get(note_id)
        del self._notes[note_id]
        if self._mirror is not None:
            self._mirror.delete(note_id)
        logger.info("Deleted note %s", note_id)
        for listener in self._delete_listeners:
            listener(note_id)

    def _touch(self, note: NoteDocument) -> None:
        note.version += 1
        if self._mirror is not None:
            self._mirror.patch_transcript_and_curated(
                note.id, note.raw_transcript, note.curated_content
            )
