"""Watch pipeline errors."""


class WatchError(Exception):
    """Base exception for the watch pipeline."""


class WatcherFault(WatchError):
    """Raised or reported when the change source overflows or fails."""
