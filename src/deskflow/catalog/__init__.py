"""Catalog, sorting, profiles, and tasks."""

from .catalog import Catalog, path_key
from .errors import (
    CatalogError,
    DuplicatePathError,
    EmptyNameError,
    NothingToUndoError,
    NotFoundError,
)
from .models import CatalogStats, FileEntry, Profile, TaskItem
from .profiles import ProfileManager
from .sorting import DEFAULT_HISTORY_LIMIT, SortEngine, SortHistory, sort_key
from .tasks import TaskList

__all__ = [
    "Catalog",
    "path_key",
    "CatalogError",
    "DuplicatePathError",
    "EmptyNameError",
    "NothingToUndoError",
    "NotFoundError",
    "CatalogStats",
    "FileEntry",
    "Profile",
    "TaskItem",
    "ProfileManager",
    "DEFAULT_HISTORY_LIMIT",
    "SortEngine",
    "SortHistory",
    "sort_key",
    "TaskList",
]
