"""Unit tests for Markdown export and shared text utilities."""

from datetime import datetime

from auranotes.core.models import NoteDocument
from auranotes.core.utils import slugify_filename, strip_code_fences
from auranotes.services.storage.export import export_filename, note_to_markdown


def _note(**overrides) -> NoteDocument:
    fields = {
        "id": "abc",
        "owner_id": "local",
        "title": "Team Sync #3",
        "raw_transcript": "we agreed to ship friday ",
        "curated_content": "- [ ] Ship on Friday",
        "created_at": datetime(2024, 5, 17, 9, 30),
    }
    fields.update(overrides)
    return NoteDocument(**fields)


def test_markdown_layout():
    md = note_to_markdown(_note())

    assert md == (
        "# Team Sync #3\n"
        "Date: 2024-05-17 09:30\n\n"
        "## AI Notes\n"
        "- [ ] Ship on Friday\n\n"
        "---\n\n"
        "## Raw Transcript\n"
        "we agreed to ship friday "
    )


def test_export_filename():
    assert export_filename(_note()) == "team_sync__3.md"


def test_slugify_empty_title_falls_back():
    assert slugify_filename("") == "note.md"


def test_slugify_custom_suffix():
    assert slugify_filename("A b", suffix=".txt") == "a_b.txt"


def test_strip_code_fences():
    assert strip_code_fences("```markdown\n# Hi\n```") == "# Hi"
    assert strip_code_fences("  plain  ") == "plain"
