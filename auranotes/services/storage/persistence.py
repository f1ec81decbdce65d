"""
Fire-and-forget persistence for note mutations.

``DocumentState`` must never wait on the database, yet writes for one note
must land in the order they were issued.  ``PersistenceMirror`` queues each
write and a single background worker applies them one by one through a
``BaseNoteStore``.  Failed writes are logged and skipped.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from auranotes.core.models import Flashcard, NoteDocument
from auranotes.services.storage.database import get_session
from auranotes.services.storage.repository import NoteRepository

logger = logging.getLogger(__name__)


class BaseNoteStore(ABC):
    """Durable storage for notes."""

    @abstractmethod
    async def save(self, note: NoteDocument) -> None:
        """Insert a newly created note."""

    @abstractmethod
    async def patch_transcript_and_curated(
        self, note_id: str, transcript: str, curated: str
    ) -> None:
        """Overwrite the transcript and curated content of a note."""

    @abstractmethod
    async def patch_artifacts(
        self,
        note_id: str,
        mind_map_mermaid: str | None = None,
        flashcards: list[Flashcard] | None = None,
    ) -> None:
        """Store derived artifacts of a note."""

    @abstractmethod
    async def delete(self, note_id: str) -> None:
        """Remove a note."""

    @abstractmethod
    async def load_all(self) -> list[NoteDocument]:
        """Return every persisted note (used to hydrate at startup)."""


class SqlNoteStore(BaseNoteStore):
    """``BaseNoteStore`` backed by SQLAlchemy, one transaction per write."""

    async def save(self, note: NoteDocument) -> None:
        async with get_session() as session:
            repo = NoteRepository(session)
            await repo.create_note(
                note_id=note.id,
                title=note.title,
                owner_id=note.owner_id,
                raw_transcript=note.raw_transcript,
                curated_content=note.curated_content,
                style=note.style.value,
                created_at=note.created_at,
            )

    async def patch_transcript_and_curated(
        self, note_id: str, transcript: str, curated: str
    ) -> None:
        async with get_session() as session:
            repo = NoteRepository(session)
            await repo.update_content(note_id, transcript, curated)

    async def patch_artifacts(
        self,
        note_id: str,
        mind_map_mermaid: str | None = None,
        flashcards: list[Flashcard] | None = None,
    ) -> None:
        async with get_session() as session:
            repo = NoteRepository(session)
            await repo.update_artifacts(
                note_id,
                mind_map_mermaid=mind_map_mermaid,
                flashcards=[c.model_dump() for c in flashcards] if flashcards is not None else None,
            )

    async def delete(self, note_id: str) -> None:
        async with get_session() as session:
            repo = NoteRepository(session)
            await repo.delete_note(note_id)

    async def load_all(self) -> list[NoteDocument]:
        async with get_session() as session:
            repo = NoteRepository(session)
            rows = await repo.list_notes(limit=10_000)
        return [
            NoteDocument(
                id=row.id,
                owner_id=row.owner_id,
                title=row.title,
                raw_transcript=row.raw_transcript,
                curated_content=row.curated_content,
                created_at=row.created_at,
                style=row.style,
                mind_map_mermaid=row.mind_map_mermaid,
                flashcards=row.flashcards,
            )
            for row in rows
        ]


class PersistenceMirror:
    """Queues store writes and applies them in order on a background task.

    The public methods are synchronous and never block; call ``start()``
    once an event loop is running, and ``close()`` on shutdown to flush
    what is still queued.

    Args:
        store: Where writes are applied.
    """

    def __init__(self, store: BaseNoteStore) -> None:
        self._store = store
        self._queue: asyncio.Queue[tuple[str, Callable[[], Awaitable[None]]]] = asyncio.Queue()
        self._task: asyncio.Task | None = None

    @property
    def store(self) -> BaseNoteStore:
        return self._store

    def start(self) -> None:
        """Launch the writer task (idempotent)."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._writer_loop())

    def save(self, note: NoteDocument) -> None:
        snapshot = note.model_copy(deep=True)
        self._submit(f"save {note.id}", lambda: self._store.save(snapshot))

    def patch_transcript_and_curated(self, note_id: str, transcript: str, curated: str) -> None:
        self._submit(
            f"patch {note_id}",
            lambda: self._store.patch_transcript_and_curated(note_id, transcript, curated),
        )

    def patch_artifacts(
        self,
        note_id: str,
        mind_map_mermaid: str | None = None,
        flashcards: list[Flashcard] | None = None,
    ) -> None:
        self._submit(
            f"artifacts {note_id}",
            lambda: self._store.patch_artifacts(note_id, mind_map_mermaid, flashcards),
        )

    def delete(self, note_id: str) -> None:
        self._submit(f"delete {note_id}", lambda: self._store.delete(note_id))

    def _submit(self, label: str, write: Callable[[], Awaitable[None]]) -> None:
        self._queue.put_nowait((label, write))
        self.start()

    async def drain(self) -> None:
        """Wait until every queued write has been applied."""
        if self._task is None:
            return
        await self._queue.join()

    async def close(self) -> None:
        """Apply remaining writes and stop the writer task."""
        await self.drain()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _writer_loop(self) -> None:
        while True:
            label, write = await self._queue.get()
            try:
                await write()
            except Exception:
                logger.exception("Persistence write failed: %s (non-fatal)", label)
            finally:
                self._queue.task_done()
