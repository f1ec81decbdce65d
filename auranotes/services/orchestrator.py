"""Note orchestrator: the caller-facing surface of AuraNotes.

Wires the capture controller, transcript buffer, curation scheduler and
document state together for one active note at a time.  A module-level
singleton holds the orchestrator used by the API.

Usage::

    from auranotes.services.orchestrator import get_orchestrator

    orch = get_orchestrator()
    note = await orch.start_capture("Standup", owner_id="local")
    orch.source.deliver("hello team", is_final=True)
    await orch.stop_capture()
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from auranotes.core.config import get_settings
from auranotes.core.exceptions import (
    CaptureAlreadyActiveError,
    EmptyNoteError,
    InvalidCaptureStateError,
    NoActiveNoteError,
    NoteNotFoundError,
    PermissionDeniedError,
)
from auranotes.core.models import (
    CaptureStateResponse,
    CaptureStatus,
    Flashcard,
    NoteDocument,
    NoteStyle,
    WebSocketMessage,
    WebSocketMessageType,
)
from auranotes.services.capture import (
    RecognitionController,
    RecognitionEvent,
    RelayedSpeechSource,
    TranscriptBuffer,
)
from auranotes.services.curation import ArtifactGenerator, BaseCurator, NoteCurator
from auranotes.services.documents import DocumentState, new_note
from auranotes.services.ingestion import UploadedFile, parse_files
from auranotes.services.llm import create_llm
from auranotes.services.scheduler import CurationScheduler
from auranotes.services.storage.persistence import PersistenceMirror, SqlNoteStore

logger = logging.getLogger(__name__)

Observer = Callable[[WebSocketMessage], Awaitable[None]]


class NoteOrchestrator:
    """Coordinates capture, curation and note state for the active note.

    Args:
        documents: Authoritative note state.
        curator: Restructuring / refine capability.
        source: Speech capability driven by the capture controller.
        artifacts: Mind map / flashcard generator.
        mirror: Persistence mirror behind *documents*, closed on shutdown.
        interval: Seconds between curation ticks while listening.
        min_new_chars: Transcript growth needed before a tick curates.
        timeout: Upper bound for one curation call (0 or None disables).
        default_style: Style used when a request does not pick one.
    """

    def __init__(
        self,
        documents: DocumentState,
        curator: BaseCurator,
        source: RelayedSpeechSource,
        artifacts: ArtifactGenerator | None = None,
        mirror: PersistenceMirror | None = None,
        interval: float = 5.0,
        min_new_chars: int = 20,
        timeout: float | None = 120.0,
        default_style: NoteStyle = NoteStyle.default,
    ) -> None:
        self.documents = documents
        self.source = source
        self.mirror = mirror
        self.buffer = TranscriptBuffer()
        self.controller = RecognitionController(
            source, self.buffer, on_interrupted=self._on_interrupted
        )
        self.controller.add_listener(self._on_recognition)
        self.scheduler = CurationScheduler(
            curator,
            documents,
            transcript=self.buffer.snapshot,
            notify=self._on_curation_result,
            interval=interval,
            min_new_chars=min_new_chars,
            timeout=timeout,
        )
        self._artifacts = artifacts
        self._default_style = default_style
        self._observers: list[Observer] = []
        self._background: set[asyncio.Task] = set()
        self.active_note_id: str | None = None
        documents.add_delete_listener(self._on_note_deleted)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def add_observer(self, observer: Observer) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: Observer) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    async def _emit(self, msg_type: WebSocketMessageType, data: dict) -> None:
        message = WebSocketMessage(type=msg_type, data=data)
        for observer in list(self._observers):
            try:
                await observer(message)
            except Exception:
                logger.warning("Observer failed for %s message (non-fatal)", msg_type.value)

    async def _emit_status(self) -> None:
        await self._emit(WebSocketMessageType.status, self.state().model_dump(mode="json"))

    async def _on_curation_result(self, payload: dict) -> None:
        if payload.get("error"):
            await self._emit(WebSocketMessageType.error, payload)
        else:
            await self._emit(WebSocketMessageType.curated, payload)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def active_note(self) -> NoteDocument | None:
        if self.active_note_id is None or not self.documents.exists(self.active_note_id):
            return None
        return self.documents.get(self.active_note_id)

    def state(self) -> CaptureStateResponse:
        """Snapshot of the active note and capture session."""
        note = self.active_note()
        capturing = self.controller.status != CaptureStatus.idle
        if capturing:
            raw_transcript = self.buffer.snapshot()
        else:
            raw_transcript = note.raw_transcript if note else ""
        return CaptureStateResponse(
            note_id=note.id if note else None,
            status=self.controller.status,
            permission_denied=self.controller.permission_denied,
            raw_transcript=raw_transcript,
            curated_content=note.curated_content if note else "",
            last_error=self.scheduler.last_error,
            in_flight=self.scheduler.in_flight,
        )

    # ------------------------------------------------------------------
    # Live capture
    # ------------------------------------------------------------------

    async def start_capture(
        self,
        title: str,
        owner_id: str,
        style: NoteStyle | None = None,
    ) -> NoteDocument:
        """Create a note and start listening into it.

        Raises:
            CaptureAlreadyActiveError: If a capture is already running.
            PermissionDeniedError: If microphone access is refused.
        """
        if self.controller.status != CaptureStatus.idle:
            raise CaptureAlreadyActiveError()

        note = self.documents.create(new_note(title, owner_id, style or self._default_style))
        await self._activate(note.id)
        self.buffer.reset()
        try:
            await self.controller.start()
        except PermissionDeniedError:
            self.documents.delete(note.id)
            await self._emit_status()
            raise
        self.scheduler.start_timer()
        await self._emit_status()
        return note

    async def pause_capture(self) -> None:
        """Pause listening; nothing heard so far is lost."""
        await self.controller.pause()
        await self.scheduler.stop_timer()
        self._mirror_transcript()
        await self._emit_status()

    async def resume_capture(self) -> None:
        """Resume listening after a pause."""
        await self.controller.resume()
        self.scheduler.start_timer()
        await self._emit_status()

    async def stop_capture(self) -> NoteDocument | None:
        """Stop listening and curate whatever is left.

        Returns:
            The settled note, or None if it was deleted meanwhile.
        """
        await self.controller.stop()
        return await self._settle_capture()

    async def _settle_capture(self) -> NoteDocument | None:
        await self.scheduler.stop_timer()
        note = self.active_note()
        if note is not None:
            self._mirror_transcript()
            await self.scheduler.flush()
        await self._emit_status()
        return self.active_note()

    def _mirror_transcript(self) -> None:
        if self.active_note() is not None:
            self.documents.update_transcript(self.active_note_id, self.buffer.snapshot())

    def _on_recognition(self, event: RecognitionEvent) -> None:
        # Finalized segments are durable; persist them right away
        if event.is_final:
            self._mirror_transcript()

    def _on_interrupted(self) -> None:
        logger.warning("Capture interrupted by the speech capability; settling note")
        self._spawn(self._settle_capture())

    # ------------------------------------------------------------------
    # One-shot ingestion
    # ------------------------------------------------------------------

    async def ingest_text(
        self,
        title: str,
        text: str,
        owner_id: str,
        style: NoteStyle | None = None,
    ) -> NoteDocument:
        """Create a note from pasted text and curate it once.

        Raises:
            CaptureAlreadyActiveError: If a capture is running.
        """
        if self.controller.status != CaptureStatus.idle:
            raise CaptureAlreadyActiveError()

        note = self.documents.create(
            new_note(title, owner_id, style or self._default_style, raw_transcript=text)
        )
        await self._activate(note.id)
        await self.scheduler.flush(text)
        await self._emit_status()
        return self.documents.get(note.id)

    async def ingest_files(
        self,
        title: str,
        files: list[UploadedFile],
        owner_id: str,
        style: NoteStyle | None = None,
    ) -> NoteDocument:
        """Create a note from uploaded files and curate it once."""
        text = parse_files(files)
        logger.info("Ingesting %d files (%d chars) as %r", len(files), len(text), title)
        return await self.ingest_text(title, text, owner_id, style)

    # ------------------------------------------------------------------
    # Note management
    # ------------------------------------------------------------------

    async def refine(self, instructions: str) -> tuple[bool, NoteDocument]:
        """Rewrite the active note's curated content.

        Returns:
            Whether the refined content was applied, and the note.

        Raises:
            NoActiveNoteError: If no note is active.
        """
        note = self.active_note()
        if note is None:
            raise NoActiveNoteError()
        applied = await self.scheduler.refine(instructions)
        if not self.documents.exists(note.id):
            raise NoteNotFoundError(note.id)
        return applied, self.documents.get(note.id)

    async def select_note(self, note_id: str) -> NoteDocument:
        """Make an existing note the active one.

        Raises:
            InvalidCaptureStateError: If a capture is running.
            NoteNotFoundError: If the note does not exist.
        """
        if self.controller.status != CaptureStatus.idle:
            raise InvalidCaptureStateError(action="switch notes", status=self.controller.status)
        note = self.documents.get(note_id)
        await self._activate(note_id)
        await self._emit_status()
        return note

    async def delete_note(self, note_id: str) -> None:
        """Delete a note; a capture into it is stopped without curating."""
        was_active = note_id == self.active_note_id
        self.documents.delete(note_id)
        if not was_active:
            return
        if self.controller.status != CaptureStatus.idle:
            await self.controller.stop()
        await self.scheduler.stop_timer()
        await self._emit_status()

    def _on_note_deleted(self, note_id: str) -> None:
        self.scheduler.invalidate(note_id)
        if note_id == self.active_note_id:
            self.active_note_id = None

    async def _activate(self, note_id: str) -> None:
        await self.scheduler.stop_timer()
        self.scheduler.activate(note_id)
        self.active_note_id = note_id

    # ------------------------------------------------------------------
    # Derived artifacts
    # ------------------------------------------------------------------

    def _curated_or_raise(self, note_id: str) -> NoteDocument:
        note = self.documents.get(note_id)
        if not note.curated_content.strip():
            raise EmptyNoteError(note_id)
        if self._artifacts is None:
            raise RuntimeError("No artifact generator configured")
        return note

    async def generate_mind_map(self, note_id: str, regenerate: bool = False) -> str:
        """Return the note's Mermaid mind map, generating it if needed."""
        note = self._curated_or_raise(note_id)
        if note.mind_map_mermaid and not regenerate:
            return note.mind_map_mermaid
        mermaid = await self._artifacts.mind_map(note.curated_content)
        if not self.documents.exists(note_id):
            raise NoteNotFoundError(note_id)
        self.documents.update_artifacts(note_id, mind_map_mermaid=mermaid)
        return mermaid

    async def generate_flashcards(self, note_id: str, regenerate: bool = False) -> list[Flashcard]:
        """Return the note's flashcard deck, generating it if needed."""
        note = self._curated_or_raise(note_id)
        if note.flashcards and not regenerate:
            return note.flashcards
        cards = await self._artifacts.flashcards(note.curated_content)
        if not self.documents.exists(note_id):
            raise NoteNotFoundError(note_id)
        self.documents.update_artifacts(note_id, flashcards=cards)
        return cards

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def hydrate(self) -> None:
        """Load persisted notes into document state."""
        if self.mirror is None:
            return
        self.documents.hydrate(await self.mirror.store.load_all())

    async def shutdown(self) -> None:
        """Settle any running capture, then flush pending work."""
        if self.controller.status != CaptureStatus.idle:
            try:
                await self.stop_capture()
            except Exception:
                logger.exception("Failed to settle capture during shutdown")
        await self.scheduler.close()
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
        if self.mirror is not None:
            await self.mirror.close()

    def _spawn(self, coro: Awaitable) -> None:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)


# ---------------------------------------------------------------------------
# Module-level singleton management
# ---------------------------------------------------------------------------

_orchestrator: NoteOrchestrator | None = None


def build_orchestrator() -> NoteOrchestrator:
    """Create an orchestrator from application settings."""
    settings = get_settings()
    llm = create_llm(provider=settings.llm_provider)
    mirror = PersistenceMirror(SqlNoteStore())
    return NoteOrchestrator(
        documents=DocumentState(mirror),
        curator=NoteCurator(llm),
        source=RelayedSpeechSource(),
        artifacts=ArtifactGenerator(llm),
        mirror=mirror,
        interval=settings.curation_interval_seconds,
        min_new_chars=settings.curation_min_new_chars,
        timeout=settings.curation_timeout_seconds,
        default_style=NoteStyle(settings.default_note_style),
    )


def get_orchestrator() -> NoteOrchestrator:
    """Return the process-wide orchestrator, building it on first use."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = build_orchestrator()
        logger.info("Note orchestrator created")
    return _orchestrator


def set_orchestrator(orchestrator: NoteOrchestrator | None) -> None:
    """Replace the process-wide orchestrator (used by tests)."""
    global _orchestrator
    _orchestrator = orchestrator


async def startup() -> None:
    """Build the orchestrator and load persisted notes (app startup)."""
    await get_orchestrator().hydrate()


async def cleanup() -> None:
    """Settle and release the orchestrator (called during app shutdown)."""
    global _orchestrator
    if _orchestrator is None:
        return
    orchestrator, _orchestrator = _orchestrator, None
    await orchestrator.shutdown()
