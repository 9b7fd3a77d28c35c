"""Error kinds and exceptions shared by the issuer, store and gateway."""

from enum import Enum

from fastapi import status


class ErrorKind(str, Enum):
    """Outcomes a file request can be rejected with."""

    TOKEN_NOT_FOUND = "TOKEN_NOT_FOUND"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Client-facing message and status per kind; nothing else reaches the caller
ERROR_RESPONSES: dict[ErrorKind, tuple[int, str]] = {
    ErrorKind.TOKEN_NOT_FOUND: (status.HTTP_404_NOT_FOUND, "Token not found"),
    ErrorKind.TOKEN_EXPIRED: (status.HTTP_404_NOT_FOUND, "Token expired"),
    ErrorKind.FILE_NOT_FOUND: (status.HTTP_404_NOT_FOUND, "File not found"),
    ErrorKind.INTERNAL_ERROR: (
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Something went wrong. Please try again later.",
    ),
}


class FileTokenError(Exception):
    """Base exception for file token errors."""

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR


class StoreError(FileTokenError):
    """Raised when the token store cannot be read or written."""

    def __init__(self, operation: str, original_error: Exception | None = None):
        self.operation = operation
        self.original_error = original_error
        detail = f": {original_error}" if original_error else ""
        super().__init__(f"Token store {operation} failed{detail}")


class TokenNotFoundError(FileTokenError):
    kind = ErrorKind.TOKEN_NOT_FOUND


class TokenExpiredError(FileTokenError):
    kind = ErrorKind.TOKEN_EXPIRED


class FileNotFoundInStorageError(FileTokenError):
    """Raised when the resolved path is not a regular file."""

    kind = ErrorKind.FILE_NOT_FOUND

    def __init__(self, path: str, reason: str = "File not found"):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class PathOutsideRootError(FileNotFoundInStorageError):
    """Raised when a file reference resolves outside its storage root."""

    def __init__(self, reference: str, reason: str = "Path escapes storage root"):
        super().__init__(reference, reason)
