"""Custom exceptions and error handlers for the API.

All API errors use a consistent response format:
{
    "error": "error_code",
    "message": "Human-readable description",
    ...additional context fields
}
"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str
    message: str
    operation: str | None = None
    song_id: str | None = None


# -- Base Exceptions --


class ServiceError(Exception):
    """Base exception for soundshelf service errors.

    Subclasses should define:
    - status_code: HTTP status code
    - error_code: Machine-readable error identifier

    The optional operation and song_id give callers enough context to
    retry safely against the same song.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        song_id: str | None = None,
    ) -> None:
        self.message = message
        self.operation = operation
        self.song_id = song_id
        super().__init__(message)


# -- Input Exceptions --


class ValidationError(ServiceError):
    """Raised when an upload or request is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "validation_error"


class UnsupportedMediaError(ValidationError):
    """Raised when an upload is not an audio file."""

    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    error_code = "unsupported_media_type"

    def __init__(self, content_type: str | None) -> None:
        self.content_type = content_type
        super().__init__(
            f"Only audio files are allowed (got {content_type or 'no content type'})",
            operation="upload",
        )


class UploadTooLargeError(ValidationError):
    """Raised when an upload exceeds the configured size cap."""

    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    error_code = "upload_too_large"

    def __init__(self, max_bytes: int) -> None:
        self.max_bytes = max_bytes
        super().__init__(
            f"File exceeds the {max_bytes} byte upload limit", operation="upload"
        )


# -- Backend Exceptions --


class StorageError(ServiceError):
    """Raised when the asset store fails to write or delete a blob."""

    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "storage_error"


class PersistenceError(ServiceError):
    """Raised when the song store fails."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "persistence_error"


# -- Lookup Exceptions --


class SongNotFoundError(ServiceError):
    """Raised when a song is not found."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "song_not_found"

    def __init__(self, song_id: str, operation: str | None = None) -> None:
        super().__init__(
            f"Song {song_id} not found", operation=operation, song_id=song_id
        )


# -- Exception Handlers --


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers on the FastAPI app."""
    from soundshelf import ParseError

    @app.exception_handler(ParseError)
    async def parse_error_handler(request: Request, exc: ParseError) -> JSONResponse:
        content: dict[str, Any] = {
            "error": "parse_error",
            "message": exc.message,
            "operation": "extract_metadata",
        }
        if exc.filename is not None:
            content["filename"] = exc.filename
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(ServiceError)
    async def service_error_handler(
        request: Request, exc: ServiceError
    ) -> JSONResponse:
        """Generic handler for all ServiceError subclasses."""
        content: dict[str, Any] = {
            "error": exc.error_code,
            "message": exc.message,
        }

        # Add context fields if present on the exception
        for field in ("operation", "song_id", "content_type", "max_bytes"):
            value = getattr(exc, field, None)
            if value is not None:
                content[field] = value

        return JSONResponse(status_code=exc.status_code, content=content)
