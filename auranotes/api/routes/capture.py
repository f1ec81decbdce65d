"""
Live capture REST endpoints.

Start, pause, resume and stop the speech capture for the active note, and
read its live state.  Recognition results themselves arrive over the
``/ws/capture`` WebSocket.
"""

from fastapi import APIRouter, Header

from auranotes.core.config import get_settings
from auranotes.core.models import CaptureStartRequest, CaptureStateResponse, NoteDocument
from auranotes.services import orchestrator

router = APIRouter(prefix="/capture", tags=["capture"])


def resolve_owner(x_owner_id: str | None) -> str:
    """Return the caller's owner id, falling back to the configured default."""
    return x_owner_id or get_settings().default_owner_id


@router.post("/start", response_model=NoteDocument)
async def start_capture(
    body: CaptureStartRequest | None = None,
    x_owner_id: str | None = Header(None),
):
    """Create a note and start listening into it."""
    body = body or CaptureStartRequest()
    orch = orchestrator.get_orchestrator()
    return await orch.start_capture(
        title=body.title,
        owner_id=resolve_owner(x_owner_id),
        style=body.style,
    )


@router.post("/pause", response_model=CaptureStateResponse)
async def pause_capture():
    """Pause listening."""
    orch = orchestrator.get_orchestrator()
    await orch.pause_capture()
    return orch.state()


@router.post("/resume", response_model=CaptureStateResponse)
async def resume_capture():
    """Resume listening after a pause."""
    orch = orchestrator.get_orchestrator()
    await orch.resume_capture()
    return orch.state()


@router.post("/stop", response_model=CaptureStateResponse)
async def stop_capture():
    """Stop listening; returns once the final curation pass has settled."""
    orch = orchestrator.get_orchestrator()
    await orch.stop_capture()
    return orch.state()


@router.get("/state", response_model=CaptureStateResponse)
async def capture_state():
    """Live transcript, curated content, status and sticky error."""
    return orchestrator.get_orchestrator().state()
