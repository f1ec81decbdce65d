"""
Pydantic v2 request / response models used across the API layer.

Notes, capture state, derived artifacts, WebSocket, Error
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class NoteStyle(StrEnum):
    """Tone and layout the curator is asked to produce."""

    default = "default"
    academic = "academic"
    creative = "creative"
    meeting = "meeting"


class CaptureStatus(StrEnum):
    """Lifecycle of the live speech capture."""

    idle = "idle"
    listening = "listening"
    paused = "paused"


class ErrorKind(StrEnum):
    """Sticky curation error surfaced to the caller."""

    auth = "auth"


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


class Flashcard(BaseModel):
    """A single study card derived from a note."""

    id: str
    front: str
    back: str


class NoteDocument(BaseModel):
    """A note as held by DocumentState and returned by the API."""

    id: str
    owner_id: str
    title: str
    raw_transcript: str = ""
    curated_content: str = ""
    created_at: datetime
    style: NoteStyle = NoteStyle.default
    mind_map_mermaid: str | None = None
    flashcards: list[Flashcard] | None = None
    version: int = 0


class CaptureStartRequest(BaseModel):
    """POST /capture/start request body."""

    title: str = Field(default="Untitled note", max_length=255)
    style: NoteStyle | None = None


class TextIngestRequest(BaseModel):
    """POST /notes/text request body."""

    title: str = Field(default="Text note", max_length=255)
    text: str = Field(min_length=1)
    style: NoteStyle | None = None


class RefineRequest(BaseModel):
    """POST /notes/active/refine request body."""

    instructions: str = Field(min_length=1)


class RefineResponse(BaseModel):
    """Outcome of a manual refine; ``applied`` is false when the call failed."""

    applied: bool
    note: NoteDocument
    last_error: ErrorKind | None = None


class DeleteNoteResponse(BaseModel):
    """DELETE /notes/{id} response."""

    id: str
    deleted: bool = True


class NoteExportResponse(BaseModel):
    """GET /notes/{id}/export response."""

    note_id: str
    filename: str
    markdown_content: str


class MindMapResponse(BaseModel):
    """POST /notes/{id}/mindmap response."""

    note_id: str
    mermaid: str


class FlashcardsResponse(BaseModel):
    """POST /notes/{id}/flashcards response."""

    note_id: str
    cards: list[Flashcard] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Capture
# ---------------------------------------------------------------------------


class CaptureStateResponse(BaseModel):
    """Live view of the active note and the capture session."""

    note_id: str | None = None
    status: CaptureStatus = CaptureStatus.idle
    permission_denied: bool = False
    raw_transcript: str = ""
    curated_content: str = ""
    last_error: ErrorKind | None = None
    in_flight: bool = False


# ---------------------------------------------------------------------------
# WebSocket
# ---------------------------------------------------------------------------


class WebSocketMessageType(StrEnum):
    """Message types sent from server to client over WebSocket."""

    connected = "connected"
    transcript = "transcript"
    curated = "curated"
    status = "status"
    error = "error"


class WebSocketMessage(BaseModel):
    """Envelope for all WebSocket messages sent to the client."""

    type: WebSocketMessageType
    data: dict = Field(default_factory=dict)


class RecognitionFrame(BaseModel):
    """A frame sent by the client's recognizer over ``/ws/capture``."""

    type: str = "result"  # "result" or "error"
    text: str = ""
    is_final: bool = False
    error: str | None = None


# ---------------------------------------------------------------------------
# Error
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    detail: str
    code: str
    timestamp: datetime
