"""Wire-level client for the Seafile api2 REST interface."""

from .auth import AuthClient, AuthError, ConfigError, TokenError
from .errors import (
    ErrorKind,
    LibraryNotFoundError,
    PathError,
    SeafileError,
    describe_status,
)
from .models import (
    DirectoryEntry,
    DirectoryItem,
    ItemType,
    LibraryRecord,
    NewLibrary,
    ResourceType,
    Session,
)
from .resources import (
    CreateError,
    DeleteError,
    DirectoryResource,
    DownloadError,
    FileResource,
    LibraryResource,
    ListError,
    MultiResource,
    RenameError,
    ResourceError,
    TransferError,
    UploadError,
)

__all__ = [
    # Auth
    "AuthClient",
    "AuthError",
    "ConfigError",
    "Session",
    "TokenError",
    # Errors
    "ErrorKind",
    "LibraryNotFoundError",
    "PathError",
    "SeafileError",
    "describe_status",
    # Resources
    "CreateError",
    "DeleteError",
    "DirectoryEntry",
    "DirectoryItem",
    "DirectoryResource",
    "DownloadError",
    "FileResource",
    "ItemType",
    "LibraryRecord",
    "LibraryResource",
    "ListError",
    "MultiResource",
    "NewLibrary",
    "RenameError",
    "ResourceError",
    "ResourceType",
    "TransferError",
    "UploadError",
]
