"""Tests for quiet-period debouncing."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from deskflow.watch import DebounceState, EventDebouncer, EventKind, PendingEvent


class _Sink:
    def __init__(self) -> None:
        self.batches: list[list[PendingEvent]] = []

    def __call__(self, batch: list[PendingEvent]) -> None:
        self.batches.append(batch)


def test_burst_flushes_once_in_arrival_order(timers, tmp_path: Path) -> None:
    sink = _Sink()
    debouncer = EventDebouncer(sink, quiet_period=0.5, timer_factory=timers)
    events = [PendingEvent.created(tmp_path / f"file{i}.txt") for i in range(10)]

    for event in events:
        debouncer.submit(event)

    assert debouncer.state is DebounceState.PENDING
    assert len(timers.active) == 1
    assert sink.batches == []

    assert timers.fire_all() == 1

    assert sink.batches == [events]
    assert debouncer.state is DebounceState.IDLE
    assert debouncer.pending_count == 0


def test_each_event_restarts_the_quiet_period(timers, tmp_path: Path) -> None:
    debouncer = EventDebouncer(_Sink(), quiet_period=0.25, timer_factory=timers)

    debouncer.submit(PendingEvent.created(tmp_path / "a.txt"))
    debouncer.submit(PendingEvent.deleted(tmp_path / "a.txt"))

    assert len(timers.created) == 2
    assert timers.created[0].cancelled is True
    assert timers.created[1].interval == 0.25
    assert timers.created[1].daemon is True


def test_stale_timer_callback_is_ignored(timers, tmp_path: Path) -> None:
    sink = _Sink()
    debouncer = EventDebouncer(sink, timer_factory=timers)
    debouncer.submit(PendingEvent.created(tmp_path / "a.txt"))
    stale = timers.created[0]
    debouncer.submit(PendingEvent.created(tmp_path / "b.txt"))

    stale.fire()

    assert sink.batches == []
    assert debouncer.pending_count == 2


def test_flush_dispatches_immediately(timers, tmp_path: Path) -> None:
    sink = _Sink()
    debouncer = EventDebouncer(sink, timer_factory=timers)
    debouncer.submit(PendingEvent.created(tmp_path / "a.txt"))

    assert debouncer.flush() == 1
    assert debouncer.flush() == 0
    assert len(sink.batches) == 1
    assert timers.active == []


def test_discard_drops_buffer(timers, tmp_path: Path) -> None:
    sink = _Sink()
    debouncer = EventDebouncer(sink, timer_factory=timers)
    debouncer.submit(PendingEvent.created(tmp_path / "a.txt"))

    assert debouncer.discard() == 1
    assert timers.fire_all() == 0
    assert sink.batches == []


def test_close_flushes_and_rejects_new_events(timers, tmp_path: Path) -> None:
    sink = _Sink()
    debouncer = EventDebouncer(sink, timer_factory=timers)
    debouncer.submit(PendingEvent.created(tmp_path / "a.txt"))

    debouncer.close()
    debouncer.submit(PendingEvent.created(tmp_path / "b.txt"))

    assert len(sink.batches) == 1
    assert debouncer.pending_count == 0


def test_sink_failure_does_not_break_the_debouncer(timers, tmp_path: Path) -> None:
    calls: list[int] = []

    def failing(batch: list[PendingEvent]) -> None:
        calls.append(len(batch))
        raise RuntimeError("boom")

    debouncer = EventDebouncer(failing, timer_factory=timers)
    debouncer.submit(PendingEvent.created(tmp_path / "a.txt"))
    timers.fire_all()
    debouncer.submit(PendingEvent.created(tmp_path / "b.txt"))
    timers.fire_all()

    assert calls == [1, 1]
    assert debouncer.state is DebounceState.IDLE


def test_quiet_period_must_be_positive() -> None:
    with pytest.raises(ValueError):
        EventDebouncer(_Sink(), quiet_period=0)


def test_renamed_event_requires_old_path(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        PendingEvent(EventKind.RENAMED, tmp_path / "new.txt")


def test_flush_waits_for_in_flight_batch(timers, tmp_path: Path) -> None:
    first_started = threading.Event()
    release = threading.Event()
    log: list[tuple[str, str]] = []

    def blocking_sink(batch: list[PendingEvent]) -> None:
        name = batch[0].path.name
        log.append(("start", name))
        if name == "a.txt":
            first_started.set()
            release.wait(timeout=5)
        log.append(("end", name))

    debouncer = EventDebouncer(blocking_sink, timer_factory=timers)
    debouncer.submit(PendingEvent.created(tmp_path / "a.txt"))
    timer_thread = threading.Thread(target=timers.created[0].fire)
    timer_thread.start()
    assert first_started.wait(timeout=5)

    debouncer.submit(PendingEvent.created(tmp_path / "b.txt"))
    flush_thread = threading.Thread(target=debouncer.flush)
    flush_thread.start()
    flush_thread.join(timeout=0.2)

    assert flush_thread.is_alive()
    assert log == [("start", "a.txt")]

    release.set()
    timer_thread.join(timeout=5)
    flush_thread.join(timeout=5)

    assert log == [("start", "a.txt"), ("end", "a.txt"), ("start", "b.txt"), ("end", "b.txt")]
