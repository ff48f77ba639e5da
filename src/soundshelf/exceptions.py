"""Custom exceptions for soundshelf.

All exceptions include an HTTP status_code attribute for easy
integration with web frameworks like FastAPI.
"""


class SoundshelfError(Exception):
    """Base exception for soundshelf.

    Attributes:
        status_code: HTTP status code for API error responses.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ParseError(SoundshelfError):
    """Failed to parse audio metadata.

    Raised when the buffer is not a container the tag parser understands,
    or when the container is truncated or corrupt.
    """

    status_code: int = 422  # Unprocessable Entity

    def __init__(self, message: str, filename: str | None = None) -> None:
        self.filename = filename
        super().__init__(message)
