"""Category-aware catalog sorting with bounded undo history."""

from __future__ import annotations

import logging
from collections import deque
from typing import Iterable

from deskflow.classification import category_rank

from .catalog import Catalog
from .errors import NothingToUndoError
from .models import FileEntry

LOGGER = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


def sort_key(entry: FileEntry) -> tuple[int, str, str]:
    """Return the ordering key: category rank, then case-folded name."""
    return (category_rank(entry.category), entry.name.casefold(), entry.name)


class SortHistory:
    """Bounded stack of catalog snapshots; the oldest snapshot is evicted first."""

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError("Sort history limit must be at least 1.")
        self._stack: deque[list[FileEntry]] = deque(maxlen=limit)

    @property
    def limit(self) -> int:
        """Return the maximum number of retained snapshots."""
        assert self._stack.maxlen is not None
        return self._stack.maxlen

    def __len__(self) -> int:
        return len(self._stack)

    def push(self, snapshot: list[FileEntry]) -> None:
        """Push a snapshot, evicting the oldest one beyond the limit."""
        self._stack.append(snapshot)

    def pop(self) -> list[FileEntry]:
        """Pop the most recent snapshot.

        Raises:
            NothingToUndoError: If the history is empty.
        """
        if not self._stack:
            raise NothingToUndoError("Nothing to undo.")
        return self._stack.pop()

    def snapshots(self) -> list[list[FileEntry]]:
        """Return deep copies of the retained snapshots, oldest first."""
        return [[entry.model_copy(deep=True) for entry in item] for item in self._stack]

    def replace(self, snapshots: Iterable[list[FileEntry]]) -> None:
        """Replace the history contents, keeping only the newest ``limit`` items."""
        self._stack.clear()
        for snapshot in snapshots:
            self._stack.append(list(snapshot))

    def clear(self) -> None:
        self._stack.clear()


class SortEngine:
    """Sort the catalog by category rank and name, recording undo snapshots."""

    def __init__(self, catalog: Catalog, history: SortHistory | None = None) -> None:
        self._catalog = catalog
        self.history = history if history is not None else SortHistory()

    def sort(self) -> list[FileEntry]:
        """Stable-sort the catalog in place after pushing its prior order.

        Returns:
            list[FileEntry]: Entries in their new order.
        """
        with self._catalog.lock:
            self.history.push(self._catalog.snapshot())
            ordered = sorted(self._catalog.entries, key=sort_key)
            self._catalog.replace_all(ordered)
            LOGGER.debug("Sorted %d catalog entries; history depth=%d", len(ordered), len(self.history))
            return list(ordered)

    def undo(self) -> list[FileEntry]:
        """Restore the order captured before the most recent sort.

        Returns:
            list[FileEntry]: Entries in their restored order.

        Raises:
            NothingToUndoError: If no sort has been recorded.
        """
        with self._catalog.lock:
            previous = self.history.pop()
            self._catalog.replace_all(previous)
            LOGGER.debug("Restored %d catalog entries from sort history", len(previous))
            return list(previous)


__all__ = ["SortEngine", "SortHistory", "sort_key", "DEFAULT_HISTORY_LIMIT"]
