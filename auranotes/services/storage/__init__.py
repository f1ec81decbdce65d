"""
Storage module - Database access, persistence mirroring, and export.
"""

from auranotes.services.storage.database import (
    Base,
    close_db,
    get_engine,
    get_session,
    init_db,
    reset_engine,
)
from auranotes.services.storage.export import export_filename, note_to_markdown
from auranotes.services.storage.models_db import Note
from auranotes.services.storage.persistence import (
    BaseNoteStore,
    PersistenceMirror,
    SqlNoteStore,
)
from auranotes.services.storage.repository import NoteRepository

__all__ = [
    "Base",
    "BaseNoteStore",
    "Note",
    "NoteRepository",
    "PersistenceMirror",
    "SqlNoteStore",
    "close_db",
    "export_filename",
    "get_engine",
    "get_session",
    "init_db",
    "note_to_markdown",
    "reset_engine",
]
