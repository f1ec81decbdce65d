"""
Markdown export of a single note.

The exported document carries the curated notes first and the raw
transcript after a horizontal rule, so it stays readable in any Markdown
viewer while keeping the source material.
"""

from auranotes.core.models import NoteDocument
from auranotes.core.utils import slugify_filename


def note_to_markdown(note: NoteDocument) -> str:
    """Render *note* as a Markdown document.

    Args:
        note: The note to export.

    Returns:
        Markdown text with title, date, curated notes and raw transcript.
    """
    return (
        f"# {note.title}\n"
        f"Date: {note.created_at.strftime('%Y-%m-%d %H:%M')}\n\n"
        f"## AI Notes\n"
        f"{note.curated_content}\n\n"
        f"---\n\n"
        f"## Raw Transcript\n"
        f"{note.raw_transcript}"
    )


def export_filename(note: NoteDocument) -> str:
    """Return the download file name for *note*."""
    return slugify_filename(note.title, suffix=".md")
