"""
Note REST endpoints.

Text and file ingestion, manual refine, listing, selection, deletion,
Markdown export, and derived artifacts.  All endpoints delegate to the
note orchestrator.
"""

import logging

from fastapi import APIRouter, File, Form, Header, Query, UploadFile

from auranotes.api.routes.capture import resolve_owner
from auranotes.core.models import (
    DeleteNoteResponse,
    FlashcardsResponse,
    MindMapResponse,
    NoteDocument,
    NoteExportResponse,
    NoteStyle,
    RefineRequest,
    RefineResponse,
    TextIngestRequest,
)
from auranotes.services import orchestrator
from auranotes.services.ingestion import UploadedFile
from auranotes.services.storage.export import export_filename, note_to_markdown

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notes", tags=["notes"])


@router.post("/text", response_model=NoteDocument)
async def ingest_text(body: TextIngestRequest, x_owner_id: str | None = Header(None)):
    """Create a note from pasted text and curate it once."""
    orch = orchestrator.get_orchestrator()
    return await orch.ingest_text(
        title=body.title,
        text=body.text,
        owner_id=resolve_owner(x_owner_id),
        style=body.style,
    )


@router.post("/files", response_model=NoteDocument)
async def ingest_files(
    files: list[UploadFile] = File(...),
    title: str = Form("Uploaded files"),
    style: NoteStyle | None = Form(None),
    x_owner_id: str | None = Header(None),
):
    """Create a note from uploaded .txt / .md / .docx / .pdf files."""
    uploads = [
        UploadedFile(filename=f.filename or "upload", data=await f.read()) for f in files
    ]
    orch = orchestrator.get_orchestrator()
    return await orch.ingest_files(
        title=title,
        files=uploads,
        owner_id=resolve_owner(x_owner_id),
        style=style,
    )


@router.post("/active/refine", response_model=RefineResponse)
async def refine_active_note(body: RefineRequest):
    """Rewrite the active note's curated content following instructions."""
    orch = orchestrator.get_orchestrator()
    applied, note = await orch.refine(body.instructions)
    return RefineResponse(applied=applied, note=note, last_error=orch.scheduler.last_error)


@router.get("", response_model=list[NoteDocument])
async def list_notes(
    x_owner_id: str | None = Header(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """List the caller's notes, newest first."""
    notes = orchestrator.get_orchestrator().documents.list_notes(resolve_owner(x_owner_id))
    return notes[offset : offset + limit]


@router.get("/{note_id}", response_model=NoteDocument)
async def get_note(note_id: str):
    """Return a single note."""
    return orchestrator.get_orchestrator().documents.get(note_id)


@router.post("/{note_id}/select", response_model=NoteDocument)
async def select_note(note_id: str):
    """Make a note the active one (for refine and live state)."""
    return await orchestrator.get_orchestrator().select_note(note_id)


@router.delete("/{note_id}", response_model=DeleteNoteResponse)
async def delete_note(note_id: str):
    """Delete a note; pending curation for it is discarded."""
    await orchestrator.get_orchestrator().delete_note(note_id)
    return DeleteNoteResponse(id=note_id)


@router.get("/{note_id}/export", response_model=NoteExportResponse)
async def export_note(note_id: str):
    """Export a note as Markdown."""
    note = orchestrator.get_orchestrator().documents.get(note_id)
    return NoteExportResponse(
        note_id=note.id,
        filename=export_filename(note),
        markdown_content=note_to_markdown(note),
    )


@router.post("/{note_id}/mindmap", response_model=MindMapResponse)
async def mind_map(note_id: str, regenerate: bool = Query(False)):
    """Generate (or return the stored) Mermaid mind map of a note."""
    mermaid = await orchestrator.get_orchestrator().generate_mind_map(note_id, regenerate)
    return MindMapResponse(note_id=note_id, mermaid=mermaid)


@router.post("/{note_id}/flashcards", response_model=FlashcardsResponse)
async def flashcards(note_id: str, regenerate: bool = Query(False)):
    """Generate (or return the stored) flashcard deck of a note."""
    cards = await orchestrator.get_orchestrator().generate_flashcards(note_id, regenerate)
    return FlashcardsResponse(note_id=note_id, cards=cards)
