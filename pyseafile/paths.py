"""Resolution of unified paths into library id and in-library path.

A unified path addresses every object the client can see::

    /                       all libraries
    /<library-id>           root of one library
    /<library-id>/a/b.txt   object inside a library

The server addresses objects by library id plus a path relative to the
library, so every operation splits the unified path first. The library root
is always expressed as ``"/"``, never as an empty string.
"""

from __future__ import annotations

from .api.errors import PathError

ROOT = "/"

__all__ = [
    "ROOT",
    "PathError",
    "extract_library_id",
    "is_root",
    "join_path",
    "split_path",
    "strip_library",
]


def is_root(path: str | None) -> bool:
    """Check whether path is empty or the root of all libraries."""
    return not path or path == ROOT


def extract_library_id(path: str | None) -> str | None:
    """Get the library id of a unified path.

    Returns:
        The first path component, or None for the root and empty paths.
    """
    if not path or path == ROOT:
        return None

    trimmed = path.strip("/")
    if not trimmed:
        return None

    library_id, _, _ = trimmed.partition("/")
    return library_id


def strip_library(path: str | None) -> str | None:
    """Get the in-library part of a unified path.

    The result keeps its leading slash. A path naming only a library
    resolves to ``"/"``.

    Returns:
        The in-library path, or None for the root and empty paths.
    """
    if not path or path == ROOT:
        return None

    trimmed = path.lstrip("/")
    if not trimmed:
        return None

    index = trimmed.find("/")
    if index == -1:
        return ROOT
    return trimmed[index:]


def split_path(path: str | None) -> tuple[str, str]:
    """Split a unified path into (library id, in-library path).

    Raises:
        PathError: If the path does not name a library.
    """
    library_id = extract_library_id(path)
    relative = strip_library(path)
    if library_id is None or relative is None:
        raise PathError(f"Path does not name a library: {path!r}")
    return library_id, relative


def join_path(library_id: str, relative: str = ROOT) -> str:
    """Build a unified path from a library id and an in-library path."""
    relative = relative.rstrip("/")
    if relative and not relative.startswith("/"):
        relative = "/" + relative
    return f"/{library_id}{relative}"
