"""Data models for raw change notifications."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class EventKind(Enum):
    """Kinds of raw change notifications."""

    CREATED = "created"
    DELETED = "deleted"
    RENAMED = "renamed"


@dataclass(frozen=True, slots=True)
class PendingEvent:
    """A raw change notification awaiting reconciliation.

    Attributes:
        kind: Notification kind.
        path: Affected path; for renames, the new path.
        old_path: Previous path for renames.
        timestamp: Wall-clock time the notification was received.
    """

    kind: EventKind
    path: Path
    old_path: Optional[Path] = None
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if self.kind is EventKind.RENAMED and self.old_path is None:
            raise ValueError("Renamed events require old_path.")

    @classmethod
    def created(cls, path: Path | str) -> "PendingEvent":
        return cls(EventKind.CREATED, Path(path))

    @classmethod
    def deleted(cls, path: Path | str) -> "PendingEvent":
        return cls(EventKind.DELETED, Path(path))

    @classmethod
    def renamed(cls, old_path: Path | str, path: Path | str) -> "PendingEvent":
        return cls(EventKind.RENAMED, Path(path), old_path=Path(old_path))


__all__ = ["EventKind", "PendingEvent"]
