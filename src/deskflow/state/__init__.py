"""State persistence helpers for DeskFlow."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from deskflow.catalog.models import FileEntry

from .errors import (
    MissingStateError,
    PersistenceReadError,
    PersistenceWriteError,
    StateError,
)
from .models import PersistedState

LOGGER = logging.getLogger(__name__)

DEFAULT_DATA_PATH = Path("~/.deskflow/data.json")
NOTES_FILENAME = "notes.txt"


def _existing_entries(entries: List[FileEntry]) -> List[FileEntry]:
    """Return reclassified entries whose backing file still exists."""
    return [entry.reclassify() for entry in entries if Path(entry.path).is_file()]


@dataclass(slots=True)
class LoadOutcome:
    """Result of a soft load.

    Attributes:
        state: Loaded state, or an empty default when loading failed.
        error: Recoverable error encountered while loading, if any.
        dropped: Number of file entries discarded because their file is gone.
    """

    state: PersistedState
    error: Optional[PersistenceReadError] = None
    dropped: int = 0


class StateRepository:
    """Manage the persistence of the catalog document."""

    def __init__(self, data_path: Path = DEFAULT_DATA_PATH) -> None:
        """Initialize the repository.

        Args:
            data_path: Location of the JSON state document.
        """
        self._data_path = Path(data_path).expanduser()

    @property
    def data_path(self) -> Path:
        """Return the path of the state document."""
        return self._data_path

    @property
    def notes_path(self) -> Path:
        """Return the path of the notes file stored beside the document."""
        return self._data_path.parent / NOTES_FILENAME

    def read(self, path: Optional[Path] = None) -> PersistedState:
        """Read and validate a state document without filtering.

        Args:
            path: Document to read; defaults to :attr:`data_path`.

        Returns:
            PersistedState: Parsed document.

        Raises:
            MissingStateError: If the document does not exist.
            PersistenceReadError: If the document cannot be read or parsed.
        """
        source = Path(path).expanduser() if path is not None else self._data_path
        if not source.exists():
            raise MissingStateError(f"No state found at {source}")

        try:
            raw = source.read_text(encoding="utf-8")
        except OSError as exc:
            raise PersistenceReadError(f"Unable to read {source}: {exc}") from exc

        try:
            data = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError as exc:
            raise PersistenceReadError(f"Invalid state data in {source}: {exc}") from exc
        if not isinstance(data, dict):
            raise PersistenceReadError(f"State document {source} must contain an object.")

        try:
            return PersistedState.model_validate(data)
        except ValidationError as exc:
            raise PersistenceReadError(f"Invalid state data in {source}: {exc}") from exc

    def load(self) -> LoadOutcome:
        """Load the state document, failing softly.

        File entries whose backing file no longer exists are dropped and the
        classification of the remaining entries is recomputed. Any read or
        parse failure yields an empty state together with the error.

        Returns:
            LoadOutcome: Loaded state and the recoverable error, if any.
        """
        try:
            state = self.read()
        except PersistenceReadError as exc:
            if not isinstance(exc, MissingStateError):
                LOGGER.warning("Falling back to empty state: %s", exc)
            return LoadOutcome(state=PersistedState(), error=exc)

        surviving = _existing_entries(state.files)
        dropped = len(state.files) - len(surviving)
        state.files = surviving
        state.sort_history = [_existing_entries(snapshot) for snapshot in state.sort_history]
        if dropped:
            LOGGER.debug("Dropped %d stale entries while loading %s", dropped, self._data_path)
        return LoadOutcome(state=state, dropped=dropped)

    def save(self, state: PersistedState, path: Optional[Path] = None) -> Path:
        """Serialize the full state document, overwriting the target.

        Args:
            state: State to persist.
            path: Destination; defaults to :attr:`data_path`.

        Returns:
            Path: File that was written.

        Raises:
            PersistenceWriteError: If the document cannot be written.
        """
        target = Path(path).expanduser() if path is not None else self._data_path
        state.updated_at = datetime.now(timezone.utc)
        payload = state.model_dump(mode="json")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            raise PersistenceWriteError(f"Unable to write {target}: {exc}") from exc
        LOGGER.debug("Persisted %d files to %s", len(state.files), target)
        return target

    def export_to(self, path: Path, state: PersistedState) -> Path:
        """Write ``state`` to a user-chosen file using the same schema."""
        return self.save(state, path)

    def import_from(self, path: Path) -> PersistedState:
        """Read a previously exported document.

        Classification fields are recomputed rather than trusted. Entries are
        not filtered for existence.

        Raises:
            PersistenceReadError: If the document is missing or invalid.
        """
        state = self.read(path)
        for entry in state.files:
            entry.reclassify()
        return state

    def load_notes(self) -> str:
        """Return saved notes, or an empty string when none exist or are unreadable."""
        try:
            return self.notes_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""
        except OSError as exc:
            LOGGER.warning("Unable to read notes from %s: %s", self.notes_path, exc)
            return ""

    def save_notes(self, text: str) -> Path:
        """Persist notes text.

        Raises:
            PersistenceWriteError: If the notes cannot be written.
        """
        try:
            self.notes_path.parent.mkdir(parents=True, exist_ok=True)
            self.notes_path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise PersistenceWriteError(f"Unable to write {self.notes_path}: {exc}") from exc
        return self.notes_path


__all__ = [
    "StateRepository",
    "LoadOutcome",
    "PersistedState",
    "DEFAULT_DATA_PATH",
    "NOTES_FILENAME",
    "StateError",
    "MissingStateError",
    "PersistenceReadError",
    "PersistenceWriteError",
]
