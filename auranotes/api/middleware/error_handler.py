"""
Exception handlers shared by every AuraNotes route.

Every failure leaves the API as ``{"detail", "code", "timestamp"}`` so the
frontend can branch on ``code`` (e.g. ``PERMISSION_DENIED`` to show the
microphone prompt) without parsing messages.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from auranotes.core.exceptions import AuraNotesError

logger = logging.getLogger(__name__)


def _envelope(status_code: int, detail: str, code: str, timestamp: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": detail,
            "code": code,
            "timestamp": timestamp or datetime.now(UTC).isoformat(),
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the domain, validation and fallback handlers on ``app``."""

    @app.exception_handler(AuraNotesError)
    async def auranotes_error_handler(_request: Request, exc: AuraNotesError) -> JSONResponse:
        return _envelope(exc.status_code, exc.detail, exc.code, exc.timestamp)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _envelope(422, str(exc), "VALIDATION_ERROR")

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        # Tracebacks stay in the server log
        logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
        return _envelope(500, "Internal server error", "INTERNAL_ERROR")
