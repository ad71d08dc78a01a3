"""Ownership of the OS change subscription with fault recovery."""

from __future__ import annotations

import logging
import os
import threading
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Protocol

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .debouncer import TimerFactory, TimerHandle
from .errors import WatcherFault
from .models import EventKind, PendingEvent

LOGGER = logging.getLogger(__name__)

EventCallback = Callable[[PendingEvent], None]


class ChangeSource(Protocol):
    """A subscribable stream of filesystem notifications for one directory."""

    def subscribe(self, callback: EventCallback) -> None: ...

    def unsubscribe(self) -> None: ...

    def is_alive(self) -> bool: ...


class SupervisorState(Enum):
    """Watcher supervisor states."""

    DISABLED = "disabled"
    ENABLED = "enabled"
    ERROR_BACKOFF = "error_backoff"


class WatcherSupervisor:
    """Forward notifications while enabled and recover from source faults.

    ``ENABLED`` and ``DISABLED`` follow explicit commands. A fault while
    enabled moves to ``ERROR_BACKOFF``: the subscription is dropped, and after
    a fixed delay it is re-established if monitoring is still wanted,
    otherwise the supervisor settles in ``DISABLED``. Notifications arriving
    outside ``ENABLED`` are dropped.
    """

    def __init__(
        self,
        source: ChangeSource,
        sink: EventCallback,
        *,
        backoff_seconds: float = 0.5,
        timer_factory: Optional[TimerFactory] = None,
        on_fault: Optional[Callable[[WatcherFault], None]] = None,
        on_recovered: Optional[Callable[[], None]] = None,
    ) -> None:
        """Initialize the supervisor.

        Args:
            source: Change source to subscribe to.
            sink: Receiver of forwarded notifications, usually the debouncer.
            backoff_seconds: Delay before re-subscribing after a fault.
            timer_factory: Factory creating the backoff timer; defaults to
                :class:`threading.Timer`.
            on_fault: Callback invoked (outside the supervisor lock) for each
                fault that triggered a backoff cycle.
            on_recovered: Callback invoked after a backoff cycle re-subscribes.
        """
        self._source = source
        self._sink = sink
        self._backoff_seconds = max(0.0, backoff_seconds)
        self._timer_factory: TimerFactory = timer_factory or threading.Timer
        self._on_fault = on_fault
        self._on_recovered = on_recovered
        self._lock = threading.RLock()
        self._state = SupervisorState.DISABLED
        self._desired_enabled = False
        self._timer: Optional[TimerHandle] = None
        self._generation = 0
        self.faults_handled = 0

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def desired_enabled(self) -> bool:
        return self._desired_enabled

    # ------------------------------------------------------------------ #
    # Commands                                                           #
    # ------------------------------------------------------------------ #

    def enable(self) -> None:
        """Start forwarding notifications.

        While a backoff cycle is running this only records the wish; the
        cycle re-subscribes when it completes.

        Raises:
            WatcherFault: If the source cannot be subscribed.
        """
        with self._lock:
            self._desired_enabled = True
            if self._state is SupervisorState.DISABLED:
                self._subscribe()
                self._state = SupervisorState.ENABLED
                LOGGER.info("Monitoring enabled")

    def disable(self) -> None:
        """Stop forwarding notifications and cancel any pending recovery."""
        with self._lock:
            self._desired_enabled = False
            previous = self._state
            self._state = SupervisorState.DISABLED
            if previous is SupervisorState.ERROR_BACKOFF:
                self._cancel_timer()
        # Released outside the lock: the observer thread may be blocked on it.
        if previous is SupervisorState.ENABLED:
            self._unsubscribe()
        if previous is not SupervisorState.DISABLED:
            LOGGER.info("Monitoring disabled")

    def close(self) -> None:
        self.disable()

    # ------------------------------------------------------------------ #
    # Inputs from the change source                                      #
    # ------------------------------------------------------------------ #

    def on_external_change(
        self,
        path: Path | str,
        kind: EventKind,
        old_path: Optional[Path | str] = None,
    ) -> bool:
        """Feed one raw notification into the pipeline.

        Returns:
            bool: Whether the notification was forwarded.
        """
        event = PendingEvent(kind, Path(path), Path(old_path) if old_path is not None else None)
        return self._receive(event)

    def report_fault(self, error: BaseException | str | None = None) -> bool:
        """Handle an overflow or driver error from the change source.

        Returns:
            bool: Whether a backoff cycle was started.
        """
        fault = error if isinstance(error, WatcherFault) else WatcherFault(str(error or "watcher fault"))
        with self._lock:
            if self._state is not SupervisorState.ENABLED:
                LOGGER.debug("Ignoring fault while %s: %s", self._state.value, fault)
                return False
            self._state = SupervisorState.ERROR_BACKOFF
            self.faults_handled += 1
            LOGGER.warning("Watcher fault, backing off for %.2fs: %s", self._backoff_seconds, fault)

        self._unsubscribe()
        with self._lock:
            if self._state is SupervisorState.ERROR_BACKOFF:
                self._arm_timer()

        if self._on_fault is not None:
            self._on_fault(fault)
        return True

    def check_health(self) -> bool:
        """Report a fault if the source died while monitoring is enabled.

        Returns:
            bool: Whether the source is healthy (or monitoring is not enabled).
        """
        with self._lock:
            healthy = self._state is not SupervisorState.ENABLED or self._source.is_alive()
        if not healthy:
            self.report_fault(WatcherFault("change source stopped unexpectedly"))
        return healthy

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _receive(self, event: PendingEvent) -> bool:
        with self._lock:
            if self._state is not SupervisorState.ENABLED:
                LOGGER.debug("Dropped %s %s while %s", event.kind.value, event.path, self._state.value)
                return False
            self._sink(event)
            return True

    def _subscribe(self) -> None:
        try:
            self._source.subscribe(self._receive)
        except OSError as exc:
            raise WatcherFault(f"Unable to watch directory: {exc}") from exc

    def _unsubscribe(self) -> None:
        try:
            self._source.unsubscribe()
        except OSError as exc:
            LOGGER.warning("Error while releasing watcher subscription: %s", exc)

    def _arm_timer(self) -> None:
        self._cancel_timer()
        generation = self._generation
        timer = self._timer_factory(self._backoff_seconds, lambda: self._resume(generation))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _cancel_timer(self) -> None:
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _resume(self, generation: int) -> None:
        recovered = False
        with self._lock:
            if generation != self._generation or self._state is not SupervisorState.ERROR_BACKOFF:
                return
            self._timer = None
            if not self._desired_enabled:
                self._state = SupervisorState.DISABLED
                LOGGER.info("Backoff finished; monitoring stays disabled")
                return
            try:
                self._subscribe()
            except WatcherFault as exc:
                LOGGER.warning("Re-subscribe failed, retrying after backoff: %s", exc)
                self._arm_timer()
                return
            self._state = SupervisorState.ENABLED
            recovered = True
            LOGGER.info("Monitoring resumed after backoff")

        if recovered and self._on_recovered is not None:
            self._on_recovered()


class _DesktopEventHandler(FileSystemEventHandler):
    """Translate watchdog events for files directly inside one directory."""

    def __init__(self, root: Path, callback: EventCallback) -> None:
        super().__init__()
        self._root_key = os.path.normcase(str(root))
        self._callback = callback

    def on_created(self, event: FileSystemEvent) -> None:
        self._emit_single(EventKind.CREATED, event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._emit_single(EventKind.CREATED, event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._emit_single(EventKind.DELETED, event)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        source = Path(os.fsdecode(event.src_path))
        destination = Path(os.fsdecode(event.dest_path))
        source_inside = self._inside(source)
        destination_inside = self._inside(destination)
        if source_inside and destination_inside:
            self._callback(PendingEvent.renamed(source, destination))
        elif source_inside:
            self._callback(PendingEvent.deleted(source))
        elif destination_inside:
            self._callback(PendingEvent.created(destination))

    def _emit_single(self, kind: EventKind, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = Path(os.fsdecode(event.src_path))
        if self._inside(path):
            self._callback(PendingEvent(kind, path))

    def _inside(self, path: Path) -> bool:
        return os.path.normcase(str(path.parent)) == self._root_key


class WatchdogChangeSource:
    """Change source backed by a non-recursive watchdog observer."""

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory).expanduser().resolve()
        self._observer: Optional[Observer] = None  # type: ignore[valid-type]

    @property
    def directory(self) -> Path:
        return self._directory

    def subscribe(self, callback: EventCallback) -> None:
        """Start an observer delivering notifications to ``callback``.

        Raises:
            RuntimeError: If a subscription is already active.
            OSError: If the directory cannot be watched.
        """
        if self._observer is not None:
            raise RuntimeError("WatchdogChangeSource is already subscribed.")
        if not self._directory.is_dir():
            raise FileNotFoundError(f"Directory does not exist: {self._directory}")
        observer = Observer()
        observer.schedule(
            _DesktopEventHandler(self._directory, callback),
            str(self._directory),
            recursive=False,
        )
        observer.daemon = True
        observer.start()
        self._observer = observer
        LOGGER.debug("Watching %s", self._directory)

    def unsubscribe(self) -> None:
        """Stop the observer if one is running."""
        observer = self._observer
        self._observer = None
        if observer is None:
            return
        observer.stop()
        if threading.current_thread() is not observer:
            observer.join(timeout=5)

    def is_alive(self) -> bool:
        return self._observer is not None and self._observer.is_alive()


__all__ = [
    "ChangeSource",
    "SupervisorState",
    "WatcherSupervisor",
    "WatchdogChangeSource",
]
