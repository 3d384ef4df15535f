"""Error types shared by the Seafile client.

Every error raised by this package derives from :class:`SeafileError` and is
tagged with an :class:`ErrorKind`, so callers can tell a malformed path from a
cache miss from a remote failure without parsing messages.
"""

from __future__ import annotations

from enum import Enum

# Human readable diagnostics for status codes the api2 endpoints return
STATUS_MESSAGES = {
    400: "Bad request.",
    403: "Forbidden.",
    405: "Method not allowed. Are you using HTTPS?",
    429: "Too many requests.",
    500: "Internal server error.",
}


class ErrorKind(str, Enum):
    """Category of a client failure."""

    PATH = "path"
    CACHE_MISS = "cache_miss"
    AUTH = "auth"
    CONFIG = "config"
    REMOTE = "remote"


class SeafileError(Exception):
    """Base exception for all client errors.

    Attributes:
        kind: Category of the failure.
        status_code: HTTP status returned by the server, if any.
    """

    kind: ErrorKind = ErrorKind.REMOTE

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def describe_status(code: int) -> str:
    """Turn an HTTP status code into a short diagnostic."""
    return STATUS_MESSAGES.get(code, str(code))


class PathError(SeafileError):
    """Raised when a path is malformed or names the root where not allowed."""

    kind = ErrorKind.PATH


class LibraryNotFoundError(SeafileError):
    """Raised when a library id is not present in the library cache."""

    kind = ErrorKind.CACHE_MISS
