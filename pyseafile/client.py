"""Filesystem-like client for a Seafile server.

All operations take unified paths (``/<library-id>/<path in library>``, see
:mod:`pyseafile.paths`) and translate them into the library plus
in-library path the api2 endpoints expect. Library records are looked up in
the client's :class:`LibraryCache`; only listing the root refreshes it, every
other operation fails with :class:`LibraryNotFoundError` for libraries the
client has not seen yet.

Operations are synchronous single calls. Nothing is retried and failures are
raised as :class:`SeafileError` subclasses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import httpx

from .api.auth import AuthClient
from .api.errors import PathError
from .api.models import DirectoryEntry, LibraryRecord, NewLibrary
from .api.resources import (
    DirectoryResource,
    FileResource,
    LibraryResource,
    MultiResource,
)
from .cache import LibraryCache
from .paths import ROOT, is_root, join_path, split_path, strip_library

if TYPE_CHECKING:
    from typing import Self

logger = logging.getLogger(__name__)


@dataclass
class Resources:
    """Endpoint groups sharing one authenticated transport."""

    libraries: LibraryResource
    directories: DirectoryResource
    files: FileResource
    multi: MultiResource

    @classmethod
    def from_http_client(cls, client: httpx.Client) -> Self:
        return cls(
            libraries=LibraryResource(client),
            directories=DirectoryResource(client),
            files=FileResource(client),
            multi=MultiResource(client),
        )


class SeafileClient:
    """Client exposing a Seafile server as one path space.

    Example:
        >>> client = SeafileClient.from_config()
        >>> listing = client.ls("/")
        >>> client.mkdir("/0b5e.../docs", "reports")
        >>> client.upload("/0b5e.../docs/reports", "q3.pdf")

    Attributes:
        auth_client: Authentication client owning the session.
        libraries: Cache of library records by id.
    """

    def __init__(self, auth_client: AuthClient) -> None:
        """Initialize the client.

        Args:
            auth_client: AuthClient holding (or able to load) a token.
        """
        self.auth_client = auth_client
        self.libraries = LibraryCache(self._fetch_libraries)
        self._http_client: httpx.Client | None = None
        self._resources: Resources | None = None

    def init_client(self) -> httpx.Client:
        """Create the authenticated transport used by all endpoint groups.

        A transport created earlier is closed first.

        Raises:
            AuthError: If no token is available.
        """
        self.close()
        self._http_client = self.auth_client.get_http_client()
        self._resources = None
        return self._http_client

    @property
    def resources(self) -> Resources:
        """Get the endpoint groups, creating the transport if necessary."""
        if self._resources is None:
            http_client = self._http_client or self.init_client()
            self._resources = Resources.from_http_client(http_client)
        return self._resources

    def _fetch_libraries(self) -> list[LibraryRecord]:
        return self.resources.libraries.list()

    def refresh_libraries(self) -> list[LibraryRecord]:
        """Refresh the library cache from the server."""
        return self.libraries.refresh()

    def _library_for(self, path: str) -> tuple[LibraryRecord, str]:
        _, relative = split_path(path)
        return self.libraries.for_path(path), relative

    def ls(self, path: str = ROOT) -> dict[str, DirectoryEntry]:
        """List the contents of a directory.

        Listing the root returns all libraries and refreshes the library
        cache as a side effect.

        Args:
            path: Unified path of a directory or library.

        Returns:
            Entries keyed by their unified path.

        Raises:
            LibraryNotFoundError: If the library is not cached.
            ListError: If listing fails.
        """
        path = path.rstrip("/") or ROOT

        if path == ROOT:
            return {
                join_path(library.id): DirectoryEntry.from_library(library)
                for library in self.libraries.refresh()
            }

        library, directory = self._library_for(path)
        items = self.resources.directories.list(library, directory)

        prefix = join_path(library.id, directory) + "/"
        return {prefix + item.name: DirectoryEntry.from_item(item) for item in items}

    def mkdir(self, path: str, name: str) -> NewLibrary | bool:
        """Create a directory, or a library when path is the root.

        Returns:
            The new library for the root, True otherwise.

        Raises:
            LibraryNotFoundError: If the library is not cached.
            CreateError: If creation fails.
        """
        if is_root(path):
            library = self.resources.libraries.create(name)
            logger.debug("Created library %s (%s)", library.id, name)
            return library

        library, parent = self._library_for(path)
        return self.resources.directories.create(library, name, parent, False)

    def rename_dir(self, path: str, new_name: str) -> bool:
        """Rename a directory.

        Raises:
            PathError: If path is the root.
            LibraryNotFoundError: If the library is not cached.
            RenameError: If renaming fails.
        """
        if is_root(path):
            raise PathError("Cannot rename the root")

        library, relative = self._library_for(path)
        return self.resources.directories.rename(library, relative, new_name)

    def rename_file(self, path: str, new_name: str) -> bool:
        """Rename a file.

        Raises:
            PathError: If path is the root.
            LibraryNotFoundError: If the library is not cached.
            RenameError: If renaming fails.
        """
        if is_root(path):
            raise PathError("Cannot rename the root")

        library, relative = self._library_for(path)
        return self.resources.files.rename(library, relative, new_name)

    def rm(self, path: str) -> bool:
        """Remove a file or directory, or a whole library.

        A path naming only a library deletes the library by id, which does
        not need the library to be cached.

        Raises:
            PathError: If path is the root.
            LibraryNotFoundError: If the library is not cached.
            DeleteError: If deletion fails.
        """
        if is_root(path):
            raise PathError("Cannot remove the root")

        library_id, relative = split_path(path)

        if relative == ROOT:
            logger.debug("Removing library %s", library_id)
            return self.resources.libraries.remove(library_id)

        library = self.libraries.for_path(path)
        return self.resources.multi.delete(library, [relative])

    def _transfer_args(
        self, src_paths: str | list[str], dst_path: str
    ) -> tuple[LibraryRecord, list[str], LibraryRecord, str]:
        if isinstance(src_paths, str):
            src_paths = [src_paths]
        if not src_paths:
            raise PathError("No source paths given")

        # The first path decides the source library; the others are not checked
        source = self.libraries.for_path(src_paths[0])

        relatives = []
        for src_path in src_paths:
            relative = strip_library(src_path)
            if relative is None:
                raise PathError(f"Path does not name a library: {src_path!r}")
            relatives.append(relative)

        destination, directory = self._library_for(dst_path)
        return source, relatives, destination, directory

    def move(self, src_paths: str | list[str], dst_path: str) -> bool:
        """Move one or more items into a directory.

        All sources are expected in the library of the first one.

        Raises:
            PathError: If a path does not name a library.
            LibraryNotFoundError: If a library is not cached.
            TransferError: If moving fails.
        """
        return self.resources.multi.move(*self._transfer_args(src_paths, dst_path))

    def copy(self, src_paths: str | list[str], dst_path: str) -> bool:
        """Copy one or more items into a directory.

        All sources are expected in the library of the first one.

        Raises:
            PathError: If a path does not name a library.
            LibraryNotFoundError: If a library is not cached.
            TransferError: If copying fails.
        """
        return self.resources.multi.copy(*self._transfer_args(src_paths, dst_path))

    def upload(
        self,
        path: str,
        local_path: str | Path,
        name: str | None = None,
    ) -> str:
        """Upload a local file into a directory.

        Args:
            path: Unified path of the destination directory.
            local_path: File to upload.
            name: Remote file name (defaults to the local file name).

        Returns:
            Id of the uploaded file.

        Raises:
            LibraryNotFoundError: If the library is not cached.
            UploadError: If upload fails.
        """
        library, directory = self._library_for(path)
        return self.resources.files.upload(library, local_path, directory, name)

    def download(self, path: str, local_path: str | Path) -> Path:
        """Download a file.

        Args:
            path: Unified path of the remote file.
            local_path: Where the file will be stored.

        Raises:
            LibraryNotFoundError: If the library is not cached.
            DownloadError: If download fails.
        """
        library, relative = self._library_for(path)
        return self.resources.files.download(library, relative, local_path)

    @classmethod
    def from_config(cls, config_path: str | Path | None = None) -> Self:
        """Create a SeafileClient using the persisted session.

        Args:
            config_path: Path to config file. If None, uses default location.
        """
        return cls(AuthClient.from_config(config_path))

    def close(self) -> None:
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None
            self._resources = None

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.close()
