"""Apply batches of change notifications to the catalog."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from deskflow.catalog import Catalog, FileEntry, SortEngine
from deskflow.classification import format_size
from deskflow.ingestion import build_entry, is_hidden_or_system, probe_file

from .models import EventKind, PendingEvent

LOGGER = logging.getLogger(__name__)

Probe = Callable[[Path], Optional[os.stat_result]]


@dataclass(slots=True)
class ReconcileResult:
    """Net effect of reconciling one batch.

    Attributes:
        added: Entries inserted by the batch.
        updated: Entries whose name or size was refreshed.
        removed: Entries removed because their file was deleted.
        renamed: ``(old_path, entry)`` pairs for entries moved in place.
        skipped: Paths ignored because they vanished or are hidden/system files.
        auto_sorted: Whether the catalog was re-sorted after inserts.
    """

    added: list[FileEntry] = field(default_factory=list)
    updated: list[FileEntry] = field(default_factory=list)
    removed: list[FileEntry] = field(default_factory=list)
    renamed: list[tuple[Path, FileEntry]] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    auto_sorted: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.added or self.updated or self.removed or self.renamed)


class Reconciler:
    """Fold ordered change notifications into the catalog.

    Reconciling the same batch twice converges on the same catalog: repeated
    creates refresh the existing entry, repeated deletes are no-ops, and a
    rename whose source is unknown degrades to a create of the destination.
    """

    def __init__(
        self,
        catalog: Catalog,
        *,
        sort_engine: Optional[SortEngine] = None,
        auto_sort_on_create: bool = False,
        on_applied: Optional[Callable[[ReconcileResult], None]] = None,
        probe: Probe = probe_file,
        include_hidden: bool = False,
    ) -> None:
        """Initialize the reconciler.

        Args:
            catalog: Catalog receiving the changes.
            sort_engine: Engine used when auto-sort on create is enabled.
            auto_sort_on_create: Re-sort the catalog after a batch inserts entries.
            on_applied: Callback run once per batch after the catalog lock is
                released, typically persisting and notifying.
            probe: Callable returning a stat result for a regular file or ``None``.
            include_hidden: Whether hidden/system files are cataloged.
        """
        self._catalog = catalog
        self._sort_engine = sort_engine
        self.auto_sort_on_create = auto_sort_on_create
        self._on_applied = on_applied
        self._probe = probe
        self._include_hidden = include_hidden

    def reconcile(self, batch: list[PendingEvent]) -> ReconcileResult:
        """Apply ``batch`` in arrival order and run the post-batch callback once.

        Args:
            batch: Ordered change notifications.

        Returns:
            ReconcileResult: Net changes applied to the catalog.
        """
        result = ReconcileResult()
        with self._catalog.lock:
            for event in batch:
                if event.kind is EventKind.CREATED:
                    self._apply_created(event.path, result)
                elif event.kind is EventKind.DELETED:
                    self._apply_deleted(event.path, result)
                elif event.kind is EventKind.RENAMED:
                    assert event.old_path is not None
                    self._apply_renamed(event.old_path, event.path, result)

            if result.added and self.auto_sort_on_create and self._sort_engine is not None:
                self._sort_engine.sort()
                result.auto_sorted = True

        LOGGER.info(
            "Reconciled %d events: added=%d updated=%d removed=%d renamed=%d skipped=%d",
            len(batch),
            len(result.added),
            len(result.updated),
            len(result.removed),
            len(result.renamed),
            len(result.skipped),
        )
        if self._on_applied is not None:
            self._on_applied(result)
        return result

    # ------------------------------------------------------------------ #
    # Event handlers                                                     #
    # ------------------------------------------------------------------ #

    def _apply_created(self, path: Path, result: ReconcileResult) -> None:
        stat_result = self._probe(path)
        existing = self._catalog.get_by_path(path)

        if existing is not None:
            if stat_result is None:
                LOGGER.debug("Known path %s vanished before refresh", path)
                return

            def refresh(entry: FileEntry) -> None:
                entry.name = path.name
                entry.size = format_size(stat_result.st_size)

            result.updated.append(self._catalog.update_by_path(path, refresh))
            LOGGER.debug("Refreshed %s", path)
            return

        if stat_result is None:
            result.skipped.append(path)
            LOGGER.debug("Skipped %s: no longer a regular file", path)
            return
        if not self._include_hidden and is_hidden_or_system(path, stat_result):
            result.skipped.append(path)
            LOGGER.debug("Skipped hidden/system file %s", path)
            return

        entry = self._catalog.insert(build_entry(path, stat_result))
        result.added.append(entry)
        LOGGER.debug("Cataloged %s as %s", path, entry.category)

    def _apply_deleted(self, path: Path, result: ReconcileResult) -> None:
        removed = self._catalog.remove_by_path(path)
        if removed is None:
            LOGGER.debug("Delete for untracked path %s ignored", path)
            return
        result.removed.append(removed)
        LOGGER.debug("Removed %s", path)

    def _apply_renamed(self, old_path: Path, new_path: Path, result: ReconcileResult) -> None:
        source = self._catalog.get_by_path(old_path)
        if source is None:
            LOGGER.debug("Rename source %s untracked; treating as create", old_path)
            self._apply_created(new_path, result)
            return

        displaced = self._catalog.get_by_path(new_path)
        if displaced is not None and displaced is not source:
            self._catalog.remove_by_path(new_path)
            result.removed.append(displaced)

        def relocate(entry: FileEntry) -> None:
            entry.move_to(new_path)
            entry.reclassify()

        entry = self._catalog.update_by_path(old_path, relocate)
        result.renamed.append((old_path, entry))
        LOGGER.debug("Renamed %s -> %s", old_path, new_path)


__all__ = ["Reconciler", "ReconcileResult"]
