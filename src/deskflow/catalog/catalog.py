"""In-memory ordered catalog of watched files."""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional
from uuid import UUID

from .errors import DuplicatePathError, NotFoundError
from .models import FileEntry


def path_key(path: str | Path) -> str:
    """Return the comparison key used to identify a path in the catalog.

    Args:
        path: Filesystem path, absolute or relative.

    Returns:
        str: Absolute, case-normalized representation of the path.
    """
    return os.path.normcase(os.path.abspath(os.fspath(path)))


class Catalog:
    """Ordered collection of :class:`FileEntry` objects with unique paths.

    The catalog does not synchronize itself. Callers performing a
    read-modify-write sequence hold :attr:`lock`, which is the single mutual
    exclusion domain shared with the sort history and the profile list.
    Every mutating call sets :attr:`dirty`; the owner is expected to persist
    and call :meth:`mark_clean`.
    """

    def __init__(self, entries: Iterable[FileEntry] = ()) -> None:
        self.lock = threading.RLock()
        self._entries: list[FileEntry] = []
        self._by_path: dict[str, FileEntry] = {}
        self.dirty = False
        self._load(entries)

    # ------------------------------------------------------------------ #
    # Queries                                                            #
    # ------------------------------------------------------------------ #

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[FileEntry]:
        return iter(list(self._entries))

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return path_key(path) in self._by_path

    @property
    def entries(self) -> list[FileEntry]:
        """Return the live entries in display order (shallow list copy)."""
        return list(self._entries)

    def get_by_path(self, path: str | Path) -> Optional[FileEntry]:
        """Return the entry tracking ``path`` if present."""
        return self._by_path.get(path_key(path))

    def get_by_id(self, entry_id: UUID) -> Optional[FileEntry]:
        """Return the entry with ``entry_id`` if present."""
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def snapshot(self) -> list[FileEntry]:
        """Return a deep, independent copy of the entries in order."""
        return [entry.model_copy(deep=True) for entry in self._entries]

    # ------------------------------------------------------------------ #
    # Mutations                                                          #
    # ------------------------------------------------------------------ #

    def insert(self, entry: FileEntry) -> FileEntry:
        """Append ``entry`` to the end of the catalog.

        Args:
            entry: Entry to insert.

        Returns:
            FileEntry: The inserted entry.

        Raises:
            DuplicatePathError: If another entry already tracks the same path.
        """
        key = path_key(entry.path)
        if key in self._by_path:
            raise DuplicatePathError(f"Path already cataloged: {entry.path}")
        self._entries.append(entry)
        self._by_path[key] = entry
        self.dirty = True
        return entry

    def update_by_path(self, path: str | Path, mutator: Callable[[FileEntry], None]) -> FileEntry:
        """Apply ``mutator`` to the entry tracking ``path`` in place.

        The mutator may change the entry's path; the index follows it. The
        entry's id and position never change.

        Raises:
            NotFoundError: If no entry tracks ``path``.
            DuplicatePathError: If the mutator moves the entry onto a path
                already tracked by another entry. The entry is left unchanged.
        """
        key = path_key(path)
        entry = self._by_path.get(key)
        if entry is None:
            raise NotFoundError(f"Path not cataloged: {path}")

        original_id = entry.id
        working = entry.model_copy(deep=True)
        mutator(working)
        working.id = original_id

        new_key = path_key(working.path)
        if new_key != key and new_key in self._by_path:
            raise DuplicatePathError(f"Path already cataloged: {working.path}")

        for field_name in type(entry).model_fields:
            setattr(entry, field_name, getattr(working, field_name))
        if new_key != key:
            del self._by_path[key]
            self._by_path[new_key] = entry
        self.dirty = True
        return entry

    def remove_by_path(self, path: str | Path) -> Optional[FileEntry]:
        """Remove and return the entry tracking ``path``; ``None`` when absent."""
        entry = self._by_path.pop(path_key(path), None)
        if entry is None:
            return None
        self._entries.remove(entry)
        self.dirty = True
        return entry

    def remove_by_id(self, entry_id: UUID) -> FileEntry:
        """Remove and return the entry with ``entry_id``.

        Raises:
            NotFoundError: If no entry has the id.
        """
        entry = self.get_by_id(entry_id)
        if entry is None:
            raise NotFoundError(f"No catalog entry with id {entry_id}")
        self._entries.remove(entry)
        del self._by_path[path_key(entry.path)]
        self.dirty = True
        return entry

    def replace_all(self, entries: Iterable[FileEntry]) -> None:
        """Replace the whole catalog, adopting the order of ``entries``.

        Later duplicates of a path are dropped so the path uniqueness
        holds for any input.
        """
        self._load(entries)
        self.dirty = True

    def clear(self) -> None:
        """Remove every entry."""
        self.replace_all(())

    def mark_clean(self) -> None:
        """Record that the current contents have been persisted."""
        self.dirty = False

    def _load(self, entries: Iterable[FileEntry]) -> None:
        ordered: list[FileEntry] = []
        index: dict[str, FileEntry] = {}
        for entry in entries:
            key = path_key(entry.path)
            if key in index:
                continue
            index[key] = entry
            ordered.append(entry)
        self._entries = ordered
        self._by_path = index


__all__ = ["Catalog", "path_key"]
