"""Unit tests for DocumentState."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from auranotes.core.exceptions import NoteNotFoundError
from auranotes.core.models import Flashcard, NoteDocument, NoteStyle
from auranotes.services.documents import DocumentState, new_note


@pytest.fixture
def mirror():
    return MagicMock()


@pytest.fixture
def documents(mirror):
    return DocumentState(mirror)


def test_new_note_defaults():
    note = new_note("Standup", "alice")
    assert len(note.id) == 32
    assert note.owner_id == "alice"
    assert note.curated_content == ""
    assert note.style == NoteStyle.default
    assert note.version == 0


def test_create_mirrors_save(documents, mirror):
    note = documents.create(new_note("A", "local"))
    assert documents.exists(note.id)
    mirror.save.assert_called_once_with(note)


def test_get_missing_raises(documents):
    with pytest.raises(NoteNotFoundError):
        documents.get("missing")


def test_updates_bump_version_and_mirror(documents, mirror):
    note = documents.create(new_note("A", "local"))

    documents.update_transcript(note.id, "raw text")
    documents.update_curated(note.id, "# Notes")

    stored = documents.get(note.id)
    assert stored.version == 2
    assert stored.raw_transcript == "raw text"
    assert stored.curated_content == "# Notes"
    mirror.patch_transcript_and_curated.assert_called_with(note.id, "raw text", "# Notes")
    assert mirror.patch_transcript_and_curated.call_count == 2


def test_update_artifacts_keeps_unset_fields(documents, mirror):
    note = documents.create(new_note("A", "local"))
    cards = [Flashcard(id="1", front="Q", back="A")]

    documents.update_artifacts(note.id, mind_map_mermaid="mindmap\n  root")
    documents.update_artifacts(note.id, flashcards=cards)

    stored = documents.get(note.id)
    assert stored.mind_map_mermaid == "mindmap\n  root"
    assert stored.flashcards == cards
    assert mirror.patch_artifacts.call_count == 2


def test_delete_notifies_listeners(documents, mirror):
    note = documents.create(new_note("A", "local"))
    listener = MagicMock()
    documents.add_delete_listener(listener)

    documents.delete(note.id)

    assert not documents.exists(note.id)
    mirror.delete.assert_called_once_with(note.id)
    listener.assert_called_once_with(note.id)


def test_delete_missing_raises(documents):
    with pytest.raises(NoteNotFoundError):
        documents.delete("missing")


def test_list_notes_newest_first_and_by_owner(documents):
    now = datetime.now(UTC)
    old = NoteDocument(id="old", owner_id="alice", title="Old", created_at=now - timedelta(days=1))
    new = NoteDocument(id="new", owner_id="alice", title="New", created_at=now)
    other = NoteDocument(id="bob", owner_id="bob", title="Bob", created_at=now)
    documents.hydrate([old, new, other])

    assert [n.id for n in documents.list_notes("alice")] == ["new", "old"]
    assert len(documents.list_notes()) == 3


def test_hydrate_does_not_mirror(documents, mirror):
    documents.hydrate([new_note("Persisted", "local")])
    mirror.save.assert_not_called()


def test_memory_only_state():
    documents = DocumentState()
    note = documents.create(new_note("A", "local"))
    documents.update_curated(note.id, "x")
    documents.delete(note.id)
    assert documents.list_notes() == []
