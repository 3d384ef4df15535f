"""Resource endpoints of the Seafile api2 interface.

Each resource wraps one endpoint group and talks to the server through an
authenticated ``httpx.Client`` (see :meth:`AuthClient.get_http_client`).
Paths passed to these classes are always relative to a library and start
with ``/``; the library root is ``"/"``.

Resources:
- LibraryResource: list, create and delete libraries
- DirectoryResource: list, create and rename directories
- FileResource: rename, upload and download files
- MultiResource: delete, move and copy several items at once
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterable
from pathlib import Path

import httpx

from .errors import ErrorKind, PathError, SeafileError, describe_status
from .models import DirectoryItem, LibraryRecord, NewLibrary

logger = logging.getLogger(__name__)

# API endpoints (relative to the server base URL)
LIBRARIES_ENDPOINT = "/api2/repos/"
LIBRARY_ENDPOINT = "/api2/repos/{library_id}/"
DIRECTORY_ENDPOINT = "/api2/repos/{library_id}/dir/"
FILE_ENDPOINT = "/api2/repos/{library_id}/file/"
UPLOAD_LINK_ENDPOINT = "/api2/repos/{library_id}/upload-link/"
FILEOPS_ENDPOINT = "/api2/repos/{library_id}/fileops/{operation}/"

# Transfers can take much longer than metadata calls
TRANSFER_TIMEOUT = 300.0

# Suffix of the temporary file a download is streamed into
PART_SUFFIX = ".part"

# Separator of item names in multi-item requests
FILE_NAMES_SEPARATOR = ":"


class ResourceError(SeafileError):
    """Base exception for failed resource calls."""

    kind = ErrorKind.REMOTE


class ListError(ResourceError):
    """Raised when listing libraries or directories fails."""

    pass


class CreateError(ResourceError):
    """Raised when creating a library or directory fails."""

    pass


class RenameError(ResourceError):
    """Raised when renaming a file or directory fails."""

    pass


class DeleteError(ResourceError):
    """Raised when deletion fails."""

    pass


class TransferError(ResourceError):
    """Raised when moving or copying items fails."""

    pass


class UploadError(ResourceError):
    """Raised when upload fails."""

    pass


class DownloadError(ResourceError):
    """Raised when download fails."""

    pass


def _check_status(
    response: httpx.Response,
    error: type[ResourceError],
    action: str,
    accepted: tuple[int, ...] = (200,),
) -> None:
    if response.status_code not in accepted:
        raise error(
            f"{action} failed: {response.status_code} - "
            f"{describe_status(response.status_code)} {response.text}".rstrip(),
            status_code=response.status_code,
        )


def _group_by_parent(paths: Iterable[str]) -> dict[str, list[str]]:
    """Group in-library paths by their parent directory, keeping order."""
    groups: dict[str, list[str]] = {}
    for path in paths:
        path = path.rstrip("/")
        if not path:
            raise PathError("The library root cannot be part of a multi-item request")
        parent, name = posixpath.split(path)
        groups.setdefault(parent or "/", []).append(name)
    return groups


class Resource:
    """Base class for endpoint groups."""

    def __init__(self, client: httpx.Client) -> None:
        """Initialize the resource.

        Args:
            client: Authenticated client bound to the server base URL.
        """
        self.client = client


class LibraryResource(Resource):
    """Libraries (repos) of the authenticated user."""

    def list(self) -> list[LibraryRecord]:
        """List all libraries.

        Raises:
            ListError: If listing fails.
        """
        try:
            response = self.client.get(LIBRARIES_ENDPOINT)
        except httpx.HTTPError as e:
            raise ListError(f"HTTP error while listing libraries: {e}") from e

        _check_status(response, ListError, "Listing libraries")

        data = response.json()
        if not data:
            return []
        return [LibraryRecord.model_validate(item) for item in data]

    def create(self, name: str, description: str = "") -> NewLibrary:
        """Create a new library.

        Raises:
            CreateError: If creation fails.
        """
        try:
            response = self.client.post(
                LIBRARIES_ENDPOINT,
                data={"name": name, "desc": description or name},
            )
        except httpx.HTTPError as e:
            raise CreateError(f"HTTP error while creating library: {e}") from e

        _check_status(response, CreateError, "Creating library", (200, 201))
        return NewLibrary.model_validate(response.json())

    def remove(self, library_id: str) -> bool:
        """Delete a library and everything in it.

        Raises:
            DeleteError: If deletion fails.
        """
        try:
            response = self.client.delete(
                LIBRARY_ENDPOINT.format(library_id=library_id)
            )
        except httpx.HTTPError as e:
            raise DeleteError(f"HTTP error while deleting library: {e}") from e

        _check_status(response, DeleteError, "Deleting library")
        return True


class DirectoryResource(Resource):
    """Directories inside a library."""

    def list(self, library: LibraryRecord, path: str = "/") -> list[DirectoryItem]:
        """List the entries of a directory.

        Raises:
            ListError: If listing fails.
        """
        try:
            response = self.client.get(
                DIRECTORY_ENDPOINT.format(library_id=library.id),
                params={"p": path},
            )
        except httpx.HTTPError as e:
            raise ListError(f"HTTP error while listing directory: {e}") from e

        _check_status(response, ListError, f"Listing {path!r}")

        data = response.json()
        if not data:
            return []
        return [DirectoryItem.model_validate(item) for item in data]

    def create(
        self,
        library: LibraryRecord,
        name: str,
        parent: str = "/",
        recursive: bool = False,
    ) -> bool:
        """Create a directory below parent.

        Args:
            library: Library to create the directory in.
            name: Name of the new directory.
            parent: In-library path of the parent directory.
            recursive: Also create missing parent directories.

        Raises:
            CreateError: If creation fails.
        """
        path = posixpath.join(parent or "/", name)
        data = {"operation": "mkdir"}
        if recursive:
            data["create_parents"] = "true"

        try:
            response = self.client.post(
                DIRECTORY_ENDPOINT.format(library_id=library.id),
                params={"p": path},
                data=data,
            )
        except httpx.HTTPError as e:
            raise CreateError(f"HTTP error while creating directory: {e}") from e

        _check_status(response, CreateError, f"Creating {path!r}", (200, 201))
        return True

    def rename(self, library: LibraryRecord, path: str, new_name: str) -> bool:
        """Rename a directory.

        Raises:
            RenameError: If renaming fails.
        """
        try:
            response = self.client.post(
                DIRECTORY_ENDPOINT.format(library_id=library.id),
                params={"p": path},
                data={"operation": "rename", "newname": new_name},
            )
        except httpx.HTTPError as e:
            raise RenameError(f"HTTP error while renaming directory: {e}") from e

        _check_status(response, RenameError, f"Renaming {path!r}", (200, 301))
        return True


class FileResource(Resource):
    """Files inside a library."""

    def rename(self, library: LibraryRecord, path: str, new_name: str) -> bool:
        """Rename a file.

        Raises:
            RenameError: If renaming fails.
        """
        try:
            response = self.client.post(
                FILE_ENDPOINT.format(library_id=library.id),
                params={"p": path},
                data={"operation": "rename", "newname": new_name},
            )
        except httpx.HTTPError as e:
            raise RenameError(f"HTTP error while renaming file: {e}") from e

        _check_status(response, RenameError, f"Renaming {path!r}", (200, 301))
        return True

    def _get_link(
        self,
        endpoint: str,
        path: str,
        error: type[ResourceError],
    ) -> str:
        try:
            response = self.client.get(endpoint, params={"p": path})
        except httpx.HTTPError as e:
            raise error(f"HTTP error while requesting link: {e}") from e

        _check_status(response, error, f"Requesting link for {path!r}")

        link = response.json()
        if not isinstance(link, str) or not link:
            raise error(f"No link received for {path!r}")
        return link

    def upload(
        self,
        library: LibraryRecord,
        local_path: str | Path,
        directory: str = "/",
        name: str | None = None,
    ) -> str:
        """Upload a local file into a directory.

        Args:
            library: Destination library.
            local_path: File to upload.
            directory: In-library path of the destination directory.
            name: Remote file name (defaults to the local file name).

        Returns:
            Id of the uploaded file.

        Raises:
            UploadError: If upload fails.
            FileNotFoundError: If the local file doesn't exist.
        """
        local_path = Path(local_path)

        if not local_path.is_file():
            raise FileNotFoundError(f"File not found: {local_path}")

        if name is None:
            name = local_path.name

        link = self._get_link(
            UPLOAD_LINK_ENDPOINT.format(library_id=library.id), directory, UploadError
        )
        logger.debug(
            "Uploading %s to %s:%s as %r", local_path, library.id, directory, name
        )

        try:
            with local_path.open("rb") as fh:
                response = self.client.post(
                    link,
                    data={"parent_dir": directory},
                    files={"file": (name, fh)},
                    timeout=TRANSFER_TIMEOUT,
                )
        except httpx.HTTPError as e:
            raise UploadError(f"HTTP error during upload: {e}") from e

        _check_status(response, UploadError, f"Uploading {name!r}")
        return response.text.strip().strip('"')

    def download(
        self,
        library: LibraryRecord,
        path: str,
        local_path: str | Path,
    ) -> Path:
        """Download a file to local_path.

        The body is streamed into a ``.part`` file next to local_path, which
        replaces local_path only once the transfer is complete.

        Returns:
            Path to the downloaded file.

        Raises:
            DownloadError: If download fails.
        """
        local_path = Path(local_path)
        part_path = local_path.with_name(local_path.name + PART_SUFFIX)

        link = self._get_link(
            FILE_ENDPOINT.format(library_id=library.id), path, DownloadError
        )
        logger.debug("Downloading %s:%s to %s", library.id, path, local_path)

        try:
            with self.client.stream("GET", link, timeout=TRANSFER_TIMEOUT) as response:
                if response.status_code != 200:
                    response.read()
                    _check_status(response, DownloadError, f"Downloading {path!r}")

                local_path.parent.mkdir(parents=True, exist_ok=True)
                with part_path.open("wb") as fh:
                    for chunk in response.iter_bytes():
                        fh.write(chunk)
            part_path.replace(local_path)
        except httpx.HTTPError as e:
            raise DownloadError(f"HTTP error during download: {e}") from e
        finally:
            part_path.unlink(missing_ok=True)

        return local_path


class MultiResource(Resource):
    """Operations on several items of one library in one request.

    The server addresses items as names inside a single directory, so the
    given paths are grouped by parent directory and sent as one request per
    group. Groups are processed in order; a failure leaves earlier groups
    applied.
    """

    def delete(self, library: LibraryRecord, paths: list[str]) -> bool:
        """Delete files and directories.

        Raises:
            PathError: If a path is the library root.
            DeleteError: If deletion fails.
        """
        for parent, names in _group_by_parent(paths).items():
            logger.debug("Deleting %s from %s:%s", names, library.id, parent)
            try:
                response = self.client.post(
                    FILEOPS_ENDPOINT.format(library_id=library.id, operation="delete"),
                    params={"p": parent},
                    data={"file_names": FILE_NAMES_SEPARATOR.join(names)},
                )
            except httpx.HTTPError as e:
                raise DeleteError(f"HTTP error during delete: {e}") from e

            _check_status(response, DeleteError, f"Deleting from {parent!r}")

        return True

    def _transfer(
        self,
        operation: str,
        source: LibraryRecord,
        paths: list[str],
        destination: LibraryRecord,
        directory: str,
    ) -> bool:
        for parent, names in _group_by_parent(paths).items():
            logger.debug(
                "%s %s from %s:%s to %s:%s",
                operation.capitalize(),
                names,
                source.id,
                parent,
                destination.id,
                directory,
            )
            try:
                response = self.client.post(
                    FILEOPS_ENDPOINT.format(library_id=source.id, operation=operation),
                    params={"p": parent},
                    data={
                        "dst_repo": destination.id,
                        "dst_dir": directory,
                        "file_names": FILE_NAMES_SEPARATOR.join(names),
                    },
                )
            except httpx.HTTPError as e:
                raise TransferError(f"HTTP error during {operation}: {e}") from e

            _check_status(
                response,
                TransferError,
                f"{operation.capitalize()} from {parent!r}",
                (200, 301),
            )

        return True

    def move(
        self,
        source: LibraryRecord,
        paths: list[str],
        destination: LibraryRecord,
        directory: str,
    ) -> bool:
        """Move items into a directory, possibly in another library.

        Raises:
            TransferError: If moving fails.
        """
        return self._transfer("move", source, paths, destination, directory)

    def copy(
        self,
        source: LibraryRecord,
        paths: list[str],
        destination: LibraryRecord,
        directory: str,
    ) -> bool:
        """Copy items into a directory, possibly in another library.

        Raises:
            TransferError: If copying fails.
        """
        return self._transfer("copy", source, paths, destination, directory)
