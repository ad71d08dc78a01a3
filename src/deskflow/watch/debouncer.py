"""Quiet-period debouncing of raw change notifications."""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Optional, Protocol

from .models import PendingEvent

LOGGER = logging.getLogger(__name__)

BatchSink = Callable[[list[PendingEvent]], None]


class TimerHandle(Protocol):
    """Subset of :class:`threading.Timer` used by the debouncer and supervisor."""

    daemon: bool

    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


class DebounceState(Enum):
    """Debouncer states."""

    IDLE = "idle"
    PENDING = "pending"


class EventDebouncer:
    """Buffer notifications and flush them as one batch after traffic stops.

    The first event moves the debouncer from ``IDLE`` to ``PENDING`` and arms
    the quiet-period timer; each further event restarts it. When the timer
    expires the buffer is handed to ``sink`` in arrival order and the
    debouncer returns to ``IDLE``. A single timer handle is owned at a time,
    and sink calls never overlap.
    """

    def __init__(
        self,
        sink: BatchSink,
        *,
        quiet_period: float = 0.5,
        timer_factory: Optional[TimerFactory] = None,
    ) -> None:
        """Initialize the debouncer.

        Args:
            sink: Callable receiving each flushed batch.
            quiet_period: Seconds without events required before flushing.
            timer_factory: Factory creating timer handles; defaults to
                :class:`threading.Timer`.
        """
        if quiet_period <= 0:
            raise ValueError("quiet_period must be greater than zero.")
        self._sink = sink
        self._quiet_period = quiet_period
        self._timer_factory: TimerFactory = timer_factory or threading.Timer
        self._lock = threading.Lock()
        self._flush_lock = threading.Lock()
        self._buffer: list[PendingEvent] = []
        self._state = DebounceState.IDLE
        self._timer: Optional[TimerHandle] = None
        self._generation = 0
        self._closed = False

    @property
    def state(self) -> DebounceState:
        return self._state

    @property
    def quiet_period(self) -> float:
        return self._quiet_period

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._buffer)

    def submit(self, event: PendingEvent) -> None:
        """Buffer ``event`` and (re)arm the quiet-period timer."""
        with self._lock:
            if self._closed:
                LOGGER.debug("Debouncer closed; dropping %s %s", event.kind.value, event.path)
                return
            self._buffer.append(event)
            self._state = DebounceState.PENDING
            self._arm_timer()

    def flush(self) -> int:
        """Flush buffered events immediately.

        Returns:
            int: Number of events handed to the sink.
        """
        with self._flush_lock:
            with self._lock:
                self._cancel_timer()
                batch = self._take_buffer()
            if batch:
                self._dispatch(batch)
            return len(batch)

    def discard(self) -> int:
        """Drop buffered events without flushing them.

        Returns:
            int: Number of events dropped.
        """
        with self._lock:
            self._cancel_timer()
            dropped = len(self._take_buffer())
        if dropped:
            LOGGER.info("Discarded %d buffered change events", dropped)
        return dropped

    def close(self, *, flush: bool = True) -> None:
        """Stop accepting events, flushing or discarding what is buffered."""
        if flush:
            self.flush()
        else:
            self.discard()
        with self._lock:
            self._closed = True

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _arm_timer(self) -> None:
        self._cancel_timer()
        generation = self._generation
        timer = self._timer_factory(self._quiet_period, lambda: self._on_timer(generation))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _cancel_timer(self) -> None:
        # Bumping the generation also neutralizes a timer that already fired
        # but has not yet acquired the lock.
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _take_buffer(self) -> list[PendingEvent]:
        batch = self._buffer
        self._buffer = []
        self._state = DebounceState.IDLE
        return batch

    def _on_timer(self, generation: int) -> None:
        with self._flush_lock:
            with self._lock:
                if generation != self._generation:
                    return
                self._timer = None
                batch = self._take_buffer()
            if batch:
                self._dispatch(batch)

    def _dispatch(self, batch: list[PendingEvent]) -> None:
        LOGGER.debug("Flushing %d change events", len(batch))
        try:
            self._sink(batch)
        except Exception:  # noqa: BLE001 - the timer thread must survive sink failures
            LOGGER.exception("Failed to reconcile a batch of %d change events", len(batch))


__all__ = ["EventDebouncer", "DebounceState", "TimerFactory", "TimerHandle", "BatchSink"]
