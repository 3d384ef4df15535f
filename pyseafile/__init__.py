# Path-addressed client for the Seafile api2 interface
from .api import AuthClient, LibraryNotFoundError, PathError, SeafileError, Session
from .cache import LibraryCache
from .client import SeafileClient
from .paths import extract_library_id, strip_library

__all__ = [
    "AuthClient",
    "LibraryCache",
    "LibraryNotFoundError",
    "PathError",
    "SeafileClient",
    "SeafileError",
    "Session",
    "extract_library_id",
    "strip_library",
]
