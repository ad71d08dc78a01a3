"""State persistence errors."""


class StateError(Exception):
    """Base exception for state repository operations."""


class PersistenceReadError(StateError):
    """Raised when stored state cannot be read or parsed."""


class MissingStateError(PersistenceReadError):
    """Raised when no state file exists yet."""


class PersistenceWriteError(StateError):
    """Raised when state cannot be written to disk."""
