"""Tests for PersistenceMirror ordering and the SQL-backed note store."""

import asyncio

from auranotes.core.models import Flashcard, NoteStyle
from auranotes.services.documents import DocumentState, new_note
from auranotes.services.storage.persistence import (
    BaseNoteStore,
    PersistenceMirror,
    SqlNoteStore,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class RecordingStore(BaseNoteStore):
    """Store that records writes; the first write is slow to expose reordering."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.calls: list[tuple] = []
        self.saved_titles: list[str] = []
        self._fail_on = fail_on

    async def _record(self, *entry) -> None:
        if not self.calls:
            await asyncio.sleep(0.02)
        if entry[0] == self._fail_on:
            self.calls.append(("failed",) + entry[1:])
            raise RuntimeError("disk full")
        self.calls.append(entry)

    async def save(self, note):
        self.saved_titles.append(note.title)
        await self._record("save", note.id)

    async def patch_transcript_and_curated(self, note_id, transcript, curated):
        await self._record("patch", note_id, transcript, curated)

    async def patch_artifacts(self, note_id, mind_map_mermaid=None, flashcards=None):
        await self._record("artifacts", note_id)

    async def delete(self, note_id):
        await self._record("delete", note_id)

    async def load_all(self):
        return []


# ---------------------------------------------------------------------------
# PersistenceMirror
# ---------------------------------------------------------------------------


class TestPersistenceMirror:
    async def test_writes_applied_in_issue_order(self):
        store = RecordingStore()
        mirror = PersistenceMirror(store)
        documents = DocumentState(mirror)

        note = documents.create(new_note("A", "local"))
        documents.update_transcript(note.id, "one")
        documents.update_curated(note.id, "two")
        documents.delete(note.id)
        await mirror.close()

        assert store.calls == [
            ("save", note.id),
            ("patch", note.id, "one", ""),
            ("patch", note.id, "one", "two"),
            ("delete", note.id),
        ]

    async def test_mutations_do_not_wait(self):
        store = RecordingStore()
        mirror = PersistenceMirror(store)
        documents = DocumentState(mirror)

        documents.create(new_note("A", "local"))

        assert store.calls == []
        await mirror.close()
        assert len(store.calls) == 1

    async def test_failed_write_is_skipped(self):
        store = RecordingStore(fail_on="patch")
        mirror = PersistenceMirror(store)

        mirror.save(new_note("A", "local"))
        mirror.patch_transcript_and_curated("x", "t", "c")
        mirror.delete("x")
        await mirror.close()

        assert [c[0] for c in store.calls] == ["save", "failed", "delete"]

    async def test_save_snapshots_note(self):
        store = RecordingStore()
        mirror = PersistenceMirror(store)
        note = new_note("Before", "local")

        mirror.save(note)
        note.title = "After"
        await mirror.close()

        assert store.saved_titles == ["Before"]

    async def test_drain_without_writes(self):
        mirror = PersistenceMirror(RecordingStore())
        await mirror.drain()
        await mirror.close()


# ---------------------------------------------------------------------------
# SqlNoteStore
# ---------------------------------------------------------------------------


class TestSqlNoteStore:
    async def test_round_trip_through_sqlite(self, use_test_engine):
        store = SqlNoteStore()
        note = new_note("Lecture", "alice", NoteStyle.academic, raw_transcript="raw")

        await store.save(note)
        await store.patch_transcript_and_curated(note.id, "raw more", "# Notes")
        await store.patch_artifacts(
            note.id,
            mind_map_mermaid="mindmap\n  root",
            flashcards=[Flashcard(id="1", front="Q", back="A")],
        )

        loaded = await store.load_all()

        assert len(loaded) == 1
        got = loaded[0]
        assert got.id == note.id
        assert got.owner_id == "alice"
        assert got.style == NoteStyle.academic
        assert got.raw_transcript == "raw more"
        assert got.curated_content == "# Notes"
        assert got.mind_map_mermaid == "mindmap\n  root"
        assert got.flashcards == [Flashcard(id="1", front="Q", back="A")]

    async def test_delete(self, use_test_engine):
        store = SqlNoteStore()
        note = new_note("Gone", "local")
        await store.save(note)

        await store.delete(note.id)

        assert await store.load_all() == []

    async def test_mirror_into_sqlite(self, use_test_engine):
        mirror = PersistenceMirror(SqlNoteStore())
        documents = DocumentState(mirror)
        note = documents.create(new_note("Live", "local"))
        documents.update_transcript(note.id, "hello ")
        documents.update_curated(note.id, "- hello")
        await mirror.close()

        restored = DocumentState()
        restored.hydrate(await SqlNoteStore().load_all())

        got = restored.get(note.id)
        assert got.raw_transcript == "hello "
        assert got.curated_content == "- hello"

