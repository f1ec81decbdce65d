"""WebSocket endpoint relaying client-side speech recognition.

The client runs speech recognition locally and streams each result as a
JSON frame.  The server feeds those results to the active capture and
pushes transcript, curated-content and status updates back.

Client frames::

    {"type": "result", "text": "...", "is_final": false}
    {"type": "error", "error": "not-allowed"}
    {"type": "grant"}

Server frames are ``WebSocketMessage`` objects.
"""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from auranotes.core.exceptions import AuraNotesError
from auranotes.core.models import (
    CaptureStatus,
    RecognitionFrame,
    WebSocketMessage,
    WebSocketMessageType,
)
from auranotes.services import orchestrator
from auranotes.services.capture.base import ERROR_NOT_ALLOWED

logger = logging.getLogger(__name__)

router = APIRouter()


def _message(msg_type: WebSocketMessageType, data: dict) -> dict:
    return WebSocketMessage(type=msg_type, data=data).model_dump(mode="json")


@router.websocket("/ws/capture")
async def capture_ws(websocket: WebSocket) -> None:
    """Relay recognition results into the active capture.

    On disconnect a running capture is paused, so nothing already heard is
    lost and a reconnecting client can resume it.
    """
    await websocket.accept()
    orch = orchestrator.get_orchestrator()
    logger.info("Capture WebSocket connected")

    await websocket.send_json(
        _message(WebSocketMessageType.connected, orch.state().model_dump(mode="json"))
    )

    async def _notify(message: WebSocketMessage) -> None:
        """Send orchestrator updates back to the WebSocket client."""
        await websocket.send_json(message.model_dump(mode="json"))

    orch.add_observer(_notify)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = RecognitionFrame.model_validate_json(raw)
            except ValidationError:
                await websocket.send_json(
                    _message(WebSocketMessageType.error, {"detail": "Malformed frame"})
                )
                continue

            if frame.type == "result":
                accepted = orch.source.deliver(frame.text, frame.is_final)
                await websocket.send_json(
                    _message(
                        WebSocketMessageType.transcript,
                        {
                            "accepted": accepted,
                            "raw_transcript": orch.buffer.snapshot(),
                            "provisional": orch.buffer.provisional,
                        },
                    )
                )
            elif frame.type == "error":
                orch.source.report_error(frame.error or "unknown")
                if frame.error == ERROR_NOT_ALLOWED:
                    await websocket.send_json(
                        _message(
                            WebSocketMessageType.error,
                            {"detail": "Microphone access denied", "code": "PERMISSION_DENIED"},
                        )
                    )
            elif frame.type == "grant":
                orch.source.grant()
                await websocket.send_json(
                    _message(WebSocketMessageType.status, orch.state().model_dump(mode="json"))
                )
            else:
                await websocket.send_json(
                    _message(
                        WebSocketMessageType.error,
                        {"detail": f"Unknown frame type: {frame.type}"},
                    )
                )

    except WebSocketDisconnect:
        logger.info("Capture WebSocket disconnected")
    except Exception:
        logger.exception("Error while relaying recognition results")
        try:
            await websocket.send_json(
                _message(WebSocketMessageType.error, {"detail": "Relay error occurred"})
            )
        except Exception:
            pass
    finally:
        orch.remove_observer(_notify)

    # ── Pause a running capture so a reconnect can resume it ──
    if orch.controller.status == CaptureStatus.listening:
        try:
            await orch.pause_capture()
        except AuraNotesError:
            logger.warning("Could not pause capture after disconnect")
