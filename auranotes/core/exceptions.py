"""
AuraNotes exception hierarchy.

All application-specific exceptions inherit from AuraNotesError,
enabling centralized error handling in the API middleware layer.
"""

from datetime import UTC, datetime


class AuraNotesError(Exception):
    """Base exception for all AuraNotes errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "AURANOTES_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


class NoteNotFoundError(AuraNotesError):
    """Raised when a note ID does not exist."""

    def __init__(self, note_id: str) -> None:
        super().__init__(
            detail=f"Note not found: {note_id}",
            code="NOTE_NOT_FOUND",
            status_code=404,
        )


class NoActiveNoteError(AuraNotesError):
    """Raised when an operation needs an active note and none is selected."""

    def __init__(self) -> None:
        super().__init__(
            detail="No note is active",
            code="NO_ACTIVE_NOTE",
            status_code=409,
        )


class EmptyNoteError(AuraNotesError):
    """Raised when a derived artifact is requested for a note without curated content."""

    def __init__(self, note_id: str) -> None:
        super().__init__(
            detail=f"Note {note_id} has no curated content yet",
            code="EMPTY_NOTE",
            status_code=409,
        )


# ---------------------------------------------------------------------------
# Capture
# ---------------------------------------------------------------------------


class PermissionDeniedError(AuraNotesError):
    """Raised when the speech capability refuses microphone access."""

    def __init__(self, detail: str = "Microphone access was denied") -> None:
        super().__init__(
            detail=detail,
            code="PERMISSION_DENIED",
            status_code=403,
        )


class CaptureAlreadyActiveError(AuraNotesError):
    """Raised when trying to start a capture while one is already running."""

    def __init__(self) -> None:
        super().__init__(
            detail="A capture is already active",
            code="CAPTURE_ALREADY_ACTIVE",
            status_code=409,
        )


class InvalidCaptureStateError(AuraNotesError):
    """Raised when a capture command is not valid in the current status."""

    def __init__(self, action: str, status: str) -> None:
        super().__init__(
            detail=f"Cannot {action} while capture is {status}",
            code="INVALID_CAPTURE_STATE",
            status_code=409,
        )


# ---------------------------------------------------------------------------
# LLM / curation
# ---------------------------------------------------------------------------


class LLMAuthError(AuraNotesError):
    """Raised by LLM providers when credentials or configuration are rejected."""

    def __init__(self, detail: str = "LLM provider rejected the credentials") -> None:
        super().__init__(detail=detail, code="LLM_AUTH_ERROR", status_code=401)


class CurationError(AuraNotesError):
    """Raised when a curation, refine or artifact call fails."""

    def __init__(
        self,
        detail: str = "Curation failed",
        code: str = "CURATION_ERROR",
        status_code: int = 502,
    ) -> None:
        super().__init__(detail=detail, code=code, status_code=status_code)


class CurationAuthError(CurationError):
    """Curation failed because the LLM provider is not authorized."""

    def __init__(self, detail: str = "LLM provider rejected the credentials") -> None:
        super().__init__(detail=detail, code="CURATION_AUTH_ERROR", status_code=401)


class MalformedResultError(CurationError):
    """The LLM answered, but with content that cannot be used."""

    def __init__(self, detail: str = "LLM returned an unusable result") -> None:
        super().__init__(detail=detail, code="MALFORMED_RESULT", status_code=502)


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


class UnsupportedFileTypeError(AuraNotesError):
    """Raised when an uploaded file has an extension we cannot read."""

    def __init__(self, filename: str) -> None:
        super().__init__(
            detail=f"Unsupported file type: {filename}. Please use .txt, .md, .docx, or .pdf",
            code="UNSUPPORTED_FILE_TYPE",
            status_code=415,
        )


class FileParseError(AuraNotesError):
    """Raised when a supported file cannot be parsed."""

    def __init__(self, filename: str, reason: str = "") -> None:
        detail = f"Failed to parse {filename}"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(detail=detail, code="FILE_PARSE_ERROR", status_code=422)
