"""
SQLAlchemy ORM models for the AuraNotes schema.

Tables: ``notes``.
"""

from datetime import UTC, datetime

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from auranotes.services.storage.database import Base


class Note(Base):
    """A persisted note with its raw transcript and curated content."""

    __tablename__ = "notes"
    __table_args__ = (Index("ix_notes_owner_created", "owner_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(255), default="local")
    title: Mapped[str] = mapped_column(String(255), default="")
    raw_transcript: Mapped[str] = mapped_column(Text, default="")
    curated_content: Mapped[str] = mapped_column(Text, default="")
    style: Mapped[str] = mapped_column(String(20), default="default")
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )
    mind_map_mermaid: Mapped[str | None] = mapped_column(Text, nullable=True)
    flashcards: Mapped[list | None] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<Note id={self.id} owner={self.owner_id!r} title={self.title!r}>"
