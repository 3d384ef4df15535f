"""In-memory cache of library metadata.

Library ids appear in every unified path, while most endpoints need the full
library record. The cache maps ids to records for the lifetime of a client.
It is only filled by an explicit :meth:`LibraryCache.refresh` (which listing
the root performs as well) and never evicts entries: libraries removed on the
server stay cached until the client is discarded.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from .api.errors import LibraryNotFoundError, PathError
from .api.models import LibraryRecord
from .paths import extract_library_id

logger = logging.getLogger(__name__)

LibraryFetcher = Callable[[], list[LibraryRecord]]


class LibraryCache:
    """Mapping from library id to the last fetched library record.

    Example:
        >>> cache = LibraryCache(library_resource.list)
        >>> cache.refresh()
        >>> cache.for_path("/0b5e.../docs/report.pdf")

    Attributes:
        generation: Number of completed refreshes, bumped on every refresh.
        refreshed_at: Time of the last completed refresh, None before.
    """

    def __init__(self, fetch: LibraryFetcher) -> None:
        """Initialize an empty cache.

        Args:
            fetch: Callable returning the current libraries from the server.
        """
        self._fetch = fetch
        self._libraries: dict[str, LibraryRecord] = {}
        self.generation = 0
        self.refreshed_at: datetime | None = None

    def refresh(self) -> list[LibraryRecord]:
        """Fetch all libraries and store them by id.

        Existing entries are overwritten, entries for libraries that no
        longer exist on the server are kept.

        Returns:
            The records returned by the server.
        """
        libraries = self._fetch()
        self.update(libraries)
        self.generation += 1
        self.refreshed_at = datetime.now(tz=UTC)
        logger.debug(
            "Library cache refreshed: %d libraries (generation %d)",
            len(libraries),
            self.generation,
        )
        return libraries

    def update(self, libraries: list[LibraryRecord]) -> None:
        for library in libraries:
            self._libraries[library.id] = library

    def get(self, library_id: str) -> LibraryRecord | None:
        """Look up a library without touching the network."""
        return self._libraries.get(library_id)

    def for_path(self, path: str) -> LibraryRecord:
        """Get the record of the library a unified path points into.

        Raises:
            PathError: If the path is empty or the root.
            LibraryNotFoundError: If the library is not cached.
        """
        library_id = extract_library_id(path)
        if library_id is None:
            raise PathError(f"Path does not name a library: {path!r}")

        library = self.get(library_id)
        if library is None:
            raise LibraryNotFoundError(
                f"Library {library_id!r} is not known, refresh the library list"
            )
        return library

    def __contains__(self, library_id: object) -> bool:
        return library_id in self._libraries

    def __len__(self) -> int:
        return len(self._libraries)

