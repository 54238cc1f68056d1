"""Read-only queries over the scanned files of a library."""

import posixpath
from collections.abc import Callable

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from src.models.db.library import LibFile

__all__ = ["LibraryReader"]


def normalize_path(path: str) -> str:
    """Normalise a POSIX path, collapsing separators, dots and trailing slashes."""
    return posixpath.normpath(path)


class LibraryReader:
    """Lookups of non-removed files inside one library.

    Paths are absolute POSIX paths. A file row stores its parent directory in
    ``path`` and its base name in ``name``.
    """

    def __init__(
        self, session_factory: Callable[[], Session], library_id: int
    ) -> None:
        """Initialize the reader.

        Args:
            session_factory (Callable[[], Session]): Factory returning new sessions.
            library_id (int): Library whose files are read.
        """
        self.session_factory = session_factory
        self.library_id = library_id

    def _query(self, *criteria) -> list[LibFile]:
        with self.session_factory() as session:
            return list(
                session.execute(
                    select(LibFile)
                    .where(
                        LibFile.library_id == self.library_id,
                        LibFile.removed.is_(False),
                        *criteria,
                    )
                    .order_by(LibFile.path, LibFile.name)
                )
                .scalars()
                .all()
            )

    def get_file(self, path: str) -> LibFile | None:
        """Return the file or directory at an absolute path, if it was scanned."""
        dir_name, base_name = posixpath.split(normalize_path(path))
        files = self._query(LibFile.path == dir_name, LibFile.name == base_name)
        return files[0] if files else None

    def get_first_sub_files(self, path: str) -> list[LibFile]:
        """Return the direct children of a directory."""
        return self._query(LibFile.path == normalize_path(path))

    def get_first_sub_files_with_no_anime(self, path: str) -> list[LibFile]:
        """Return the direct children of a directory not yet associated with anime."""
        return self._query(
            LibFile.path == normalize_path(path), LibFile.anime_id.is_(None)
        )

    def get_all_sub_files(self, path: str) -> list[LibFile]:
        """Return every descendant of a directory, at any depth."""
        path = normalize_path(path)
        prefix = path if path.endswith("/") else f"{path}/"
        return self._query(
            or_(
                LibFile.path == path,
                LibFile.path.startswith(prefix, autoescape=True),
            )
        )
