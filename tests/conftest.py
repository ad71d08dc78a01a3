"""Shared fixtures for the DeskFlow test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import pytest

from deskflow.watch import PendingEvent


class FakeTimer:
    """Manually fired stand-in for :class:`threading.Timer`."""

    def __init__(self, interval: float, function: Callable[[], None]) -> None:
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        """Run the callback as the timer thread would, even if cancelled late."""
        self.fired = True
        self.function()


class FakeTimerFactory:
    """Timer factory recording every timer it creates."""

    def __init__(self) -> None:
        self.created: list[FakeTimer] = []

    def __call__(self, interval: float, function: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(interval, function)
        self.created.append(timer)
        return timer

    @property
    def active(self) -> list[FakeTimer]:
        return [t for t in self.created if t.started and not t.cancelled and not t.fired]

    def fire_all(self) -> int:
        """Fire every active timer; returns how many fired."""
        pending = self.active
        for timer in pending:
            timer.fire()
        return len(pending)


class FakeSource:
    """Change source recording subscriptions instead of watching the disk."""

    def __init__(self) -> None:
        self.callback: Optional[Callable[[PendingEvent], None]] = None
        self.subscribe_calls = 0
        self.unsubscribe_calls = 0
        self.failures_remaining = 0
        self.alive = True

    def subscribe(self, callback: Callable[[PendingEvent], None]) -> None:
        if self.failures_remaining:
            self.failures_remaining -= 1
            raise OSError("directory unavailable")
        assert self.callback is None, "duplicate subscription"
        self.subscribe_calls += 1
        self.callback = callback

    def unsubscribe(self) -> None:
        self.unsubscribe_calls += 1
        self.callback = None

    def is_alive(self) -> bool:
        return self.callback is not None and self.alive

    def emit(self, event: PendingEvent) -> None:
        assert self.callback is not None
        self.callback(event)


@pytest.fixture
def timers() -> FakeTimerFactory:
    return FakeTimerFactory()


@pytest.fixture
def desktop(tmp_path: Path) -> Path:
    """Return an empty directory standing in for the watched desktop."""
    directory = tmp_path / "Desktop"
    directory.mkdir()
    return directory


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()
