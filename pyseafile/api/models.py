"""Pydantic models for the Seafile api2 endpoints."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Session(BaseModel):
    """Server address and API token for one authenticated identity.

    Stored in the seafile config file in YAML format.
    """

    server: str = Field(..., description="Server base URL")
    token: str = Field(default="", description="API token, empty until acquired")

    @property
    def authenticated(self) -> bool:
        return bool(self.token)


class ItemType(str, Enum):
    """Type of an entry inside a library, as reported by the server."""

    DIR = "dir"
    FILE = "file"


class ResourceType(str, Enum):
    """Type of a listed resource."""

    COLLECTION = "collection"
    FILE = "file"


class LibraryRecord(BaseModel):
    """Snapshot of a library (repo) on the server."""

    id: str = Field(..., description="Library id")
    name: str = Field(default="", description="Display name")
    size: int = Field(default=0, description="Size in bytes")
    mtime: int = Field(default=0, description="Last modification, unix time")
    encrypted: bool = Field(default=False, description="Client-side encrypted")

    model_config = ConfigDict(frozen=True)


class NewLibrary(BaseModel):
    """Response from the library creation endpoint."""

    id: str = Field(..., alias="repo_id")
    name: str = Field(default="", alias="repo_name")
    size: int = Field(default=0, alias="repo_size")

    model_config = ConfigDict(populate_by_name=True)


class DirectoryItem(BaseModel):
    """Entry returned by the directory listing endpoint."""

    id: str = Field(default="")
    name: str
    item_type: ItemType = Field(..., alias="type")
    size: int = Field(default=0)
    mtime: int = Field(default=0)

    model_config = ConfigDict(populate_by_name=True)

    @property
    def is_dir(self) -> bool:
        return self.item_type == ItemType.DIR


class DirectoryEntry(BaseModel):
    """One row of a listing result, keyed by its full path."""

    display_name: str = Field(..., alias="displayname")
    id: str
    resource_type: ResourceType = Field(..., alias="resourcetype")
    content_length: int = Field(default=0, alias="contentlength")
    last_modified: int = Field(default=0, alias="lastmodified")
    encrypted: bool = False

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_library(cls, library: LibraryRecord) -> DirectoryEntry:
        return cls(
            display_name=library.name,
            id=library.id,
            resource_type=ResourceType.COLLECTION,
            content_length=library.size,
            last_modified=library.mtime,
            encrypted=library.encrypted,
        )

    @classmethod
    def from_item(cls, item: DirectoryItem) -> DirectoryEntry:
        return cls(
            display_name=item.name,
            id=item.id,
            resource_type=(
                ResourceType.COLLECTION if item.is_dir else ResourceType.FILE
            ),
            content_length=item.size,
            last_modified=item.mtime,
            encrypted=False,
        )

    @property
    def is_collection(self) -> bool:
        return self.resource_type == ResourceType.COLLECTION
