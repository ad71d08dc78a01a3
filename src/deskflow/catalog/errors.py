"""Catalog errors."""


class CatalogError(Exception):
    """Base exception for catalog operations."""


class NotFoundError(CatalogError):
    """Raised when a path or id is absent from the catalog."""


class DuplicatePathError(CatalogError):
    """Raised when inserting an entry whose path is already cataloged."""


class NothingToUndoError(CatalogError):
    """Raised when undo is requested with an empty sort history."""


class EmptyNameError(CatalogError):
    """Raised when a profile or task is created with blank text."""
