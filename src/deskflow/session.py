"""Session facade wiring the catalog, persistence, and watch pipeline.

A :class:`DeskflowSession` is what a UI (or the CLI) talks to. It owns the
single catalog lock domain: every catalog, sort history, profile, and task
mutation runs under ``catalog.lock``, and persistence happens after the lock
is released but before the operation reports completion. User-visible state
changes are reported through ``notify(message, is_error)``.
"""

from __future__ import annotations

import logging
import os
import shutil
import threading
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Optional
from uuid import UUID

from deskflow.catalog import (
    Catalog,
    CatalogError,
    CatalogStats,
    FileEntry,
    NothingToUndoError,
    NotFoundError,
    Profile,
    ProfileManager,
    SortEngine,
    SortHistory,
    TaskItem,
    TaskList,
    path_key,
)
from deskflow.config import DeskflowConfig
from deskflow.ingestion import DesktopScanner
from deskflow.organization import MoveOutcome, OperationExecutor, OrganizerPlanner
from deskflow.state import (
    LoadOutcome,
    MissingStateError,
    PersistedState,
    PersistenceReadError,
    PersistenceWriteError,
    StateRepository,
)
from deskflow.watch import (
    ChangeSource,
    EventDebouncer,
    EventKind,
    ReconcileResult,
    Reconciler,
    WatchdogChangeSource,
    WatcherFault,
    WatcherSupervisor,
)
from deskflow.watch.debouncer import TimerFactory

LOGGER = logging.getLogger(__name__)

Notifier = Callable[[str, bool], None]


def log_notification(message: str, is_error: bool) -> None:
    """Default notifier that routes messages to the log."""
    if is_error:
        LOGGER.error(message)
    else:
        LOGGER.info(message)


class DeskflowSession:
    """Own the live catalog and expose the operations a UI triggers."""

    def __init__(
        self,
        config: DeskflowConfig,
        *,
        notify: Optional[Notifier] = None,
        repository: Optional[StateRepository] = None,
        change_source: Optional[ChangeSource] = None,
        timer_factory: Optional[TimerFactory] = None,
    ) -> None:
        """Initialize the session without touching disk.

        Args:
            config: Effective configuration.
            notify: Receiver for one-line user notifications.
            repository: State repository; defaults to the configured data path.
            change_source: Source of filesystem notifications; defaults to a
                watchdog observer on the watched directory.
            timer_factory: Timer factory for the debouncer and backoff.
        """
        self._config = config
        self.directory = config.watch.resolved_directory()
        self.repository = repository or StateRepository(config.storage.resolved_data_path())
        self._notify = notify or log_notification
        self._save_lock = threading.Lock()

        self.catalog = Catalog()
        self.sort_engine = SortEngine(self.catalog, SortHistory(config.catalog.sort_history_limit))
        self.profiles = ProfileManager(self.catalog)
        self.tasks = TaskList(self.catalog)
        self._scanner = DesktopScanner(include_hidden=config.watch.include_hidden)
        self._planner = OrganizerPlanner()
        self._executor = OperationExecutor()
        self._stats = CatalogStats()

        self.reconciler = Reconciler(
            self.catalog,
            sort_engine=self.sort_engine,
            auto_sort_on_create=config.catalog.auto_sort_on_create,
            on_applied=self._after_reconcile,
            include_hidden=config.watch.include_hidden,
        )
        self.debouncer = EventDebouncer(
            self.reconciler.reconcile,
            quiet_period=config.watch.debounce_ms / 1000,
            timer_factory=timer_factory,
        )
        self.supervisor = WatcherSupervisor(
            change_source or WatchdogChangeSource(self.directory),
            self.debouncer.submit,
            backoff_seconds=config.watch.error_backoff_ms / 1000,
            timer_factory=timer_factory,
            on_fault=self._on_watcher_fault,
            on_recovered=lambda: self._notify("Monitoring resumed", False),
        )

    @property
    def config(self) -> DeskflowConfig:
        return self._config

    @property
    def stats(self) -> CatalogStats:
        """Return counters computed after the last committed change."""
        return self._stats

    # ------------------------------------------------------------------ #
    # Persistence                                                        #
    # ------------------------------------------------------------------ #

    def load(self) -> LoadOutcome:
        """Replace in-memory state with the persisted document.

        Load failures fall back to an empty state and are notified, except
        for a missing document, which is the normal first run.
        """
        outcome = self.repository.load()
        state = outcome.state
        with self.catalog.lock:
            self.catalog.replace_all(state.files)
            self.catalog.mark_clean()
            self.profiles.replace_all(state.profiles)
            self.tasks.replace_all(state.tasks)
            self.sort_engine.history.replace(state.sort_history)
        self._refresh_stats()

        if outcome.error is not None and not isinstance(outcome.error, MissingStateError):
            self._notify(f"Failed to load data: {outcome.error}", True)
        return outcome

    def save(self) -> bool:
        """Persist the whole state; failures are notified, not rolled back.

        Returns:
            bool: Whether the document was written.
        """
        with self._save_lock:
            with self.catalog.lock:
                state = self._build_state()
                self.catalog.mark_clean()
            try:
                self.repository.save(state)
            except PersistenceWriteError as exc:
                self.catalog.dirty = True
                LOGGER.warning("Save failed: %s", exc)
                self._notify(f"Failed to save data: {exc}", True)
                return False
        return True

    def export_to(self, path: Path) -> bool:
        """Write the current state to a user-chosen file."""
        with self.catalog.lock:
            state = self._build_state()
        try:
            self.repository.export_to(Path(path), state)
        except PersistenceWriteError as exc:
            self._notify(f"Export failed: {exc}", True)
            return False
        self._notify("Data exported", False)
        return True

    def import_from(self, path: Path) -> bool:
        """Replace catalog, profiles, and tasks with an exported document."""
        try:
            state = self.repository.import_from(Path(path))
        except PersistenceReadError as exc:
            self._notify(f"Import failed: {exc}", True)
            return False
        with self.catalog.lock:
            self.catalog.replace_all(state.files)
            self.profiles.replace_all(state.profiles)
            self.tasks.replace_all(state.tasks)
            self.sort_engine.history.replace(state.sort_history)
        self._commit("Data imported")
        return True

    # ------------------------------------------------------------------ #
    # Scanning and monitoring                                            #
    # ------------------------------------------------------------------ #

    def scan(self) -> list[FileEntry]:
        """Enumerate the watched directory and replace the catalog with it."""
        if not self.directory.is_dir():
            self._notify(f"Scan failed: {self.directory} is not a directory", True)
            return []
        entries = list(self._scanner.scan(self.directory))
        with self.catalog.lock:
            self.catalog.replace_all(entries)
        self._commit(f"Found {len(entries)} files")
        return entries

    def on_external_change(
        self,
        path: Path | str,
        kind: EventKind,
        old_path: Optional[Path | str] = None,
    ) -> bool:
        """Feed a raw change notification into the watcher supervisor."""
        return self.supervisor.on_external_change(path, kind, old_path)

    def start_monitoring(self) -> bool:
        """Enable the watcher; returns whether the subscription succeeded."""
        try:
            self.supervisor.enable()
        except WatcherFault as exc:
            LOGGER.warning("Unable to start monitoring: %s", exc)
            self._notify(f"Monitoring error: {exc}", True)
            return False
        self._notify("Monitoring enabled", False)
        return True

    def stop_monitoring(self) -> None:
        """Disable the watcher.

        Events already buffered by the debouncer are still reconciled when
        its quiet period expires.
        """
        self.supervisor.disable()
        self._notify("Monitoring disabled", False)

    def set_auto_sort(self, enabled: bool) -> None:
        self.reconciler.auto_sort_on_create = enabled
        self._notify("Auto-sort enabled" if enabled else "Auto-sort disabled", False)

    def flush_pending(self) -> int:
        """Reconcile buffered notifications now instead of after the quiet period."""
        return self.debouncer.flush()

    def close(self) -> None:
        """Stop monitoring and reconcile whatever is still buffered."""
        self.supervisor.disable()
        self.debouncer.close(flush=True)

    # ------------------------------------------------------------------ #
    # Sorting and profiles                                               #
    # ------------------------------------------------------------------ #

    def sort(self) -> list[FileEntry]:
        ordered = self.sort_engine.sort()
        self._commit("Files sorted")
        return ordered

    def undo(self) -> Optional[list[FileEntry]]:
        """Undo the last sort; returns ``None`` when there is nothing to undo."""
        try:
            restored = self.sort_engine.undo()
        except NothingToUndoError:
            self._notify("Nothing to undo", True)
            return None
        self._commit("Sort undone")
        return restored

    def create_profile(self, name: str, description: str = "") -> Optional[Profile]:
        try:
            profile = self.profiles.create(name, description)
        except CatalogError as exc:
            return self._report(exc)
        self._commit(f"Profile created: {profile.name}")
        return profile

    def apply_profile(self, profile_id: UUID) -> Optional[list[FileEntry]]:
        try:
            applied = self.profiles.apply(profile_id)
            name = self.profiles.get(profile_id).name
        except CatalogError as exc:
            return self._report(exc)
        self._commit(f"Profile applied: {name}")
        return applied

    def update_profile(
        self,
        profile_id: UUID,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Optional[Profile]:
        try:
            profile = self.profiles.update(profile_id, name=name, description=description)
        except CatalogError as exc:
            return self._report(exc)
        self._commit(f"Profile updated: {profile.name}")
        return profile

    def delete_profile(self, profile_id: UUID) -> bool:
        try:
            profile = self.profiles.delete(profile_id)
        except CatalogError as exc:
            self._report(exc)
            return False
        self._commit(f"Profile deleted: {profile.name}")
        return True

    # ------------------------------------------------------------------ #
    # Tasks and notes                                                    #
    # ------------------------------------------------------------------ #

    def add_task(self, text: str) -> Optional[TaskItem]:
        try:
            task = self.tasks.add(text)
        except CatalogError as exc:
            return self._report(exc)
        self._commit()
        return task

    def toggle_task(self, task_id: UUID) -> Optional[TaskItem]:
        try:
            task = self.tasks.toggle(task_id)
        except CatalogError as exc:
            return self._report(exc)
        self._commit()
        return task

    def set_task_completed(self, task_id: UUID, completed: bool = True) -> Optional[TaskItem]:
        try:
            task = self.tasks.set_completed(task_id, completed)
        except CatalogError as exc:
            return self._report(exc)
        self._commit()
        return task

    def remove_task(self, task_id: UUID) -> bool:
        try:
            self.tasks.remove(task_id)
        except CatalogError as exc:
            self._report(exc)
            return False
        self._commit()
        return True

    def load_notes(self) -> str:
        return self.repository.load_notes()

    def save_notes(self, text: str) -> bool:
        try:
            self.repository.save_notes(text)
        except PersistenceWriteError as exc:
            LOGGER.warning("Notes not saved: %s", exc)
            return False
        return True

    # ------------------------------------------------------------------ #
    # File actions                                                       #
    # ------------------------------------------------------------------ #

    def delete_file(self, entry_id: UUID) -> bool:
        """Delete a cataloged file from disk and from the catalog."""
        with self.catalog.lock:
            entry = self.catalog.get_by_id(entry_id)
            if entry is None:
                self._report(NotFoundError(f"No catalog entry with id {entry_id}"))
                return False
            try:
                Path(entry.path).unlink(missing_ok=True)
            except OSError as exc:
                self._notify(f"Failed to delete {entry.name}: {exc}", True)
                return False
            self.catalog.remove_by_id(entry_id)
        self._commit(f"Deleted: {entry.name}")
        return True

    def clear_directory(self) -> int:
        """Delete every cataloged file inside the watched directory and empty the catalog.

        Returns:
            int: Number of files deleted from disk.
        """
        root_key = path_key(self.directory)
        prefix = root_key if root_key.endswith(os.sep) else root_key + os.sep
        deleted = 0
        with self.catalog.lock:
            if not len(self.catalog):
                return 0
            for entry in self.catalog.entries:
                if not path_key(entry.path).startswith(prefix):
                    continue
                try:
                    Path(entry.path).unlink(missing_ok=True)
                    deleted += 1
                except OSError as exc:
                    LOGGER.warning("Failed to delete %s: %s", entry.path, exc)
            self.catalog.clear()
        self._commit("Directory cleared")
        return deleted

    def add_files(self, sources: Iterable[Path]) -> list[Path]:
        """Copy files into the watched directory without overwriting.

        The watcher catalogs the copies when monitoring is enabled.
        """
        copied: list[Path] = []
        for source in sources:
            destination = self.directory / Path(source).name
            if destination.exists():
                LOGGER.debug("Skipping %s: destination exists", source)
                continue
            try:
                shutil.copy2(source, destination)
            except OSError as exc:
                self._notify(f"Failed to add {Path(source).name}: {exc}", True)
                continue
            copied.append(destination)
        return copied

    def move_to_category_folders(
        self,
        sort_directory: Optional[Path] = None,
        *,
        dry_run: bool = False,
    ) -> Optional[MoveOutcome]:
        """Move cataloged files into ``<sort_directory>/<category>/`` folders."""
        target = Path(
            sort_directory or self._config.organization.sort_directory or self.directory
        ).expanduser()
        with self.catalog.lock:
            if not len(self.catalog):
                self._notify("No files to move", True)
                return None
            plan = self._planner.build_plan(self.catalog.entries, target)
            outcome = self._executor.apply(plan, dry_run=dry_run)
            if dry_run:
                return outcome
            # Stale entries may still claim a destination path.
            for missing_id in plan.missing:
                self.catalog.remove_by_id(missing_id)
            rejected: list[CatalogError] = []
            for move_op in outcome.moved:

                def relocate(entry: FileEntry, destination: Path = move_op.destination) -> None:
                    entry.move_to(destination)

                try:
                    self.catalog.update_by_path(move_op.source, relocate)
                except CatalogError as exc:
                    LOGGER.warning("Catalog not updated for %s: %s", move_op.source, exc)
                    rejected.append(exc)

        for failure in outcome.failed:
            self._notify(f"Move failed: {failure}", True)
        for exc in rejected:
            self._report(exc)
        self._commit(f"Moved {len(outcome.moved)} files")
        return outcome

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _build_state(self) -> PersistedState:
        return PersistedState(
            files=self.catalog.snapshot(),
            profiles=[profile.model_copy(deep=True) for profile in self.profiles.profiles],
            tasks=[task.model_copy(deep=True) for task in self.tasks.tasks],
            sort_history=self.sort_engine.history.snapshots(),
        )

    def _commit(self, message: Optional[str] = None) -> bool:
        saved = self.save()
        self._refresh_stats()
        if message:
            self._notify(message, False)
        return saved

    def _refresh_stats(self) -> None:
        with self.catalog.lock:
            categories = Counter(entry.category for entry in self.catalog.entries)
            self._stats = CatalogStats(
                files=len(self.catalog),
                profiles=len(self.profiles),
                tasks=len(self.tasks),
                completed_tasks=self.tasks.completed_count,
                categories=dict(categories),
                last_change=datetime.now(timezone.utc),
            )

    def _report(self, exc: CatalogError) -> None:
        LOGGER.info("%s: %s", type(exc).__name__, exc)
        self._notify(str(exc), True)
        return None

    def _after_reconcile(self, result: ReconcileResult) -> None:
        if not result.changed:
            return
        self._commit()
        for entry in result.added:
            self._notify(f"New file: {entry.name}", False)
        for entry in result.removed:
            self._notify(f"Removed: {entry.name}", False)
        for old_path, entry in result.renamed:
            self._notify(f"Renamed: {old_path.name} -> {entry.name}", False)
        if result.auto_sorted:
            self._notify("Files sorted", False)

    def _on_watcher_fault(self, fault: WatcherFault) -> None:
        self._notify(f"Monitoring error, restarting: {fault}", True)


__all__ = ["DeskflowSession", "Notifier", "log_notification"]
