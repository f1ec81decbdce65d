"""Periodic, single-flight curation of the active note.

While capture is listening, a background ``asyncio.Task`` wakes up every
``interval`` seconds and, when the transcript has grown enough, launches one
curation call.  Final flushes (stop / ingestion) and manual refines go
through the same in-flight guard, so at most one LLM call per note is ever
outstanding.

Results are applied only if the note they were started for is still the
active one: every note switch or delete bumps an epoch, and a completion
whose ``(note_id, epoch)`` no longer matches is discarded.

Usage::

    scheduler = CurationScheduler(curator, documents, transcript=buffer.snapshot)
    scheduler.activate(note.id)
    scheduler.start_timer()
    ...
    await scheduler.stop_timer()
    await scheduler.flush()
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from auranotes.core.exceptions import CurationAuthError, CurationError, NoActiveNoteError
from auranotes.core.models import ErrorKind
from auranotes.services.curation.base import BaseCurator
from auranotes.services.documents import DocumentState

logger = logging.getLogger(__name__)


@dataclass
class CurationCursor:
    """Curation progress for one active note."""

    note_id: str
    last_processed_length: int = 0
    in_flight: bool = False
    last_error: ErrorKind | None = None


class CurationScheduler:
    """Decides when to curate the active note and applies the results.

    Args:
        curator: Restructuring / refine capability.
        documents: Where curated content is written.
        transcript: Returns the live transcript of the active note.
        notify: Async callback receiving result payloads (e.g. WebSocket send).
        interval: Seconds between ticks.
        min_new_chars: A tick only curates when the transcript grew by more
            than this many characters since the last call.
        timeout: Upper bound in seconds for one call; ``None`` or 0 waits forever.
    """

    def __init__(
        self,
        curator: BaseCurator,
        documents: DocumentState,
        transcript: Callable[[], str],
        notify: Callable[[dict], Awaitable[None]] | None = None,
        interval: float = 5.0,
        min_new_chars: int = 20,
        timeout: float | None = 120.0,
    ) -> None:
        self._curator = curator
        self._documents = documents
        self._transcript = transcript
        self._notify = notify
        self._interval = interval
        self._min_new_chars = min_new_chars
        self._timeout = timeout or None

        self._cursor: CurationCursor | None = None
        self._retired_error: ErrorKind | None = None
        self._epoch = 0
        self._idle = asyncio.Condition()
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        self._calls: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def cursor(self) -> CurationCursor | None:
        return self._cursor

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def in_flight(self) -> bool:
        return self._cursor is not None and self._cursor.in_flight

    @property
    def last_error(self) -> ErrorKind | None:
        if self._cursor is None:
            return self._retired_error
        return self._cursor.last_error

    @property
    def is_ticking(self) -> bool:
        return self._task is not None and not self._task.done()

    def activate(self, note_id: str) -> CurationCursor:
        """Make *note_id* the active note with a fresh cursor.

        Re-activating the note that is already active keeps its cursor and
        epoch, so a call still running for it stays the only one and its
        result is applied. The sticky auth error carries over; only a
        successful call clears it.
        """
        if self._cursor is not None and self._cursor.note_id == note_id:
            logger.debug("Note %s already active (epoch %d)", note_id, self._epoch)
            return self._cursor
        previous_error = self.last_error
        self._epoch += 1
        self._stop_event.set()
        self._cursor = CurationCursor(note_id=note_id, last_error=previous_error)
        logger.info("Curation cursor activated for note %s (epoch %d)", note_id, self._epoch)
        return self._cursor

    def invalidate(self, note_id: str) -> bool:
        """Drop the active cursor if it belongs to *note_id*.

        Any call still running for that note finishes without writing.
        Returns True when the active note was invalidated.
        """
        cursor = self._cursor
        if cursor is None or cursor.note_id != note_id:
            return False
        self._epoch += 1
        self._retired_error = cursor.last_error
        self._cursor = None
        self._stop_event.set()
        logger.info("Curation cursor invalidated for note %s (epoch %d)", note_id, self._epoch)
        return True

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def start_timer(self) -> None:
        """Start periodic ticking for the active note.

        Raises:
            NoActiveNoteError: If no note is active.
        """
        if self._cursor is None:
            raise NoActiveNoteError()
        if self.is_ticking and not self._stop_event.is_set():
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._tick_loop(self._stop_event, self._cursor.note_id))

    async def stop_timer(self) -> None:
        """Stop periodic ticking and wait for the loop to exit."""
        self._stop_event.set()
        task, self._task = self._task, None
        if task is not None:
            await task

    async def _tick_loop(self, stop_event: asyncio.Event, note_id: str) -> None:
        """Background loop: tick every interval until *stop_event* is set."""
        logger.info("Curation timer started for note %s", note_id)
        try:
            while not stop_event.is_set():
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=self._interval)
                except TimeoutError:
                    self.tick()
        except Exception:
            logger.exception("Curation timer crashed for note %s", note_id)
        finally:
            logger.info("Curation timer ended for note %s", note_id)

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def tick(self) -> asyncio.Task | None:
        """Launch a curation call if the transcript grew enough.

        Never waits: a tick that finds a call in flight is skipped.

        Returns:
            The task running the call, or None when the tick was skipped.
        """
        cursor = self._cursor
        if cursor is None or not self._documents.exists(cursor.note_id):
            return None

        transcript = self._transcript()
        length = len(transcript)
        delta = length - cursor.last_processed_length
        if delta <= self._min_new_chars:
            logger.debug("Tick skipped for note %s: only %d new chars", cursor.note_id, delta)
            return None
        if cursor.in_flight:
            logger.debug("Tick skipped for note %s: call in flight", cursor.note_id)
            return None

        # Check-then-set happens without yielding to the loop
        cursor.last_processed_length = length
        cursor.in_flight = True
        epoch = self._epoch

        note = self._documents.update_transcript(cursor.note_id, transcript)
        prior = note.curated_content or None
        style = note.style

        task = asyncio.create_task(
            self._run(
                cursor,
                epoch,
                lambda: self._curator.curate(transcript, prior, style),
                action="curation",
            )
        )
        self._calls.add(task)
        task.add_done_callback(self._calls.discard)
        return task

    async def flush(self, transcript: str | None = None) -> bool:
        """Curate the active note once, ignoring the growth threshold.

        Waits for an in-flight call instead of racing it.

        Args:
            transcript: Text to curate; defaults to the live transcript.

        Returns:
            True when new curated content was written.
        """
        cursor = self._cursor
        if cursor is None:
            return False
        epoch = self._epoch

        await self._claim(cursor)
        text = self._transcript() if transcript is None else transcript
        if not self._is_current(cursor, epoch) or not text.strip():
            await self._release(cursor)
            return False

        cursor.last_processed_length = max(cursor.last_processed_length, len(text))
        note = self._documents.get(cursor.note_id)
        logger.info("Final flush for note %s (%d chars)", cursor.note_id, len(text))
        return await self._run(
            cursor,
            epoch,
            lambda: self._curator.curate(text, note.curated_content or None, note.style),
            action="final flush",
        )

    async def refine(self, instructions: str) -> bool:
        """Rewrite the active note's curated content following *instructions*.

        Waits for an in-flight call, then works on the latest content.

        Returns:
            True when the refined content was written.

        Raises:
            NoActiveNoteError: If no note is active.
        """
        cursor = self._cursor
        if cursor is None:
            raise NoActiveNoteError()
        epoch = self._epoch

        await self._claim(cursor)
        if not self._is_current(cursor, epoch):
            await self._release(cursor)
            return False

        note = self._documents.get(cursor.note_id)
        return await self._run(
            cursor,
            epoch,
            lambda: self._curator.refine(note.curated_content, instructions),
            action="refine",
        )

    async def wait_idle(self) -> None:
        """Wait for every launched tick call to finish."""
        if self._calls:
            await asyncio.gather(*list(self._calls), return_exceptions=True)

    async def close(self) -> None:
        """Stop ticking and let outstanding calls settle."""
        await self.stop_timer()
        await self.wait_idle()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _claim(self, cursor: CurationCursor) -> None:
        async with self._idle:
            await self._idle.wait_for(lambda: not cursor.in_flight)
            cursor.in_flight = True

    async def _release(self, cursor: CurationCursor) -> None:
        async with self._idle:
            cursor.in_flight = False
            self._idle.notify_all()

    def _is_current(self, cursor: CurationCursor, epoch: int) -> bool:
        active = self._cursor
        return (
            epoch == self._epoch
            and active is not None
            and active.note_id == cursor.note_id
            and self._documents.exists(cursor.note_id)
        )

    async def _bounded(self, call: Awaitable[str]) -> str:
        if self._timeout is None:
            return await call
        return await asyncio.wait_for(call, timeout=self._timeout)

    async def _run(
        self,
        cursor: CurationCursor,
        epoch: int,
        call: Callable[[], Awaitable[str]],
        action: str,
    ) -> bool:
        """Run one claimed call, apply its result, and always release the claim."""
        try:
            result = await self._bounded(call())
            return await self._apply(cursor, epoch, result, action)
        except CurationAuthError as exc:
            logger.warning("%s for note %s rejected: %s", action, cursor.note_id, exc.detail)
            if self._is_current(cursor, epoch):
                cursor.last_error = ErrorKind.auth
                await self._send({"error": True, "kind": ErrorKind.auth.value, "detail": exc.detail})
            return False
        except CurationError as exc:
            logger.warning("%s for note %s failed (non-fatal): %s", action, cursor.note_id, exc.detail)
            return False
        except TimeoutError:
            logger.warning(
                "%s for note %s timed out after %ss (non-fatal)", action, cursor.note_id, self._timeout
            )
            return False
        except Exception:
            logger.exception("Unexpected error during %s for note %s", action, cursor.note_id)
            return False
        finally:
            await self._release(cursor)

    async def _apply(self, cursor: CurationCursor, epoch: int, result: str, action: str) -> bool:
        if not self._is_current(cursor, epoch):
            logger.info(
                "Discarding %s result for note %s (switched or deleted)", action, cursor.note_id
            )
            return False
        if not result:
            return False

        note = self._documents.update_curated(cursor.note_id, result)
        cursor.last_error = None
        await self._send(
            {
                "note_id": note.id,
                "curated_content": note.curated_content,
                "version": note.version,
            }
        )
        return True

    async def _send(self, payload: dict) -> None:
        if self._notify is None:
            return
        try:
            await self._notify(payload)
        except Exception:
            logger.warning("Notify callback failed (non-fatal)")
