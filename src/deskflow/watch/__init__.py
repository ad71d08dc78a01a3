"""Filesystem watch-and-reconcile pipeline."""

from .debouncer import DebounceState, EventDebouncer
from .errors import WatcherFault, WatchError
from .models import EventKind, PendingEvent
from .reconciler import ReconcileResult, Reconciler
from .supervisor import ChangeSource, SupervisorState, WatchdogChangeSource, WatcherSupervisor

__all__ = [
    "DebounceState",
    "EventDebouncer",
    "WatcherFault",
    "WatchError",
    "EventKind",
    "PendingEvent",
    "ReconcileResult",
    "Reconciler",
    "ChangeSource",
    "SupervisorState",
    "WatchdogChangeSource",
    "WatcherSupervisor",
]
