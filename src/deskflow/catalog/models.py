"""Catalog data models."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from deskflow.classification import OTHER_CATEGORY, classify_path


class FileEntry(BaseModel):
    """A file known to the catalog.

    Attributes:
        id: Stable identifier assigned on first insertion.
        name: Display name (file name with extension).
        path: Absolute path of the backing file.
        size: Human-readable size string.
        category: Category label derived from the extension.
        icon: Display tag for the category.
        color: Color tag for the category.
    """

    id: UUID = Field(default_factory=uuid4)
    name: str = ""
    path: str
    size: str = ""
    category: str = OTHER_CATEGORY
    icon: str = ""
    color: str = ""

    def reclassify(self) -> "FileEntry":
        """Recompute classification fields from the current path.

        Returns:
            FileEntry: The same entry, for chaining.
        """
        result = classify_path(self.path)
        self.category = result.category
        self.icon = result.icon
        self.color = result.color
        return self

    def move_to(self, path: str | Path) -> None:
        """Point the entry at a new path, refreshing its display name."""
        self.path = str(path)
        self.name = Path(path).name


class Profile(BaseModel):
    """Named snapshot of the catalog."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    description: str = ""
    files: List[FileEntry] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def files_count(self) -> int:
        """Return the number of entries captured by the profile."""
        return len(self.files)


class TaskItem(BaseModel):
    """A to-do item kept alongside the catalog."""

    id: UUID = Field(default_factory=uuid4)
    text: str
    completed: bool = False


class CatalogStats(BaseModel):
    """Derived counters refreshed after catalog mutations."""

    files: int = 0
    profiles: int = 0
    tasks: int = 0
    completed_tasks: int = 0
    categories: dict[str, int] = Field(default_factory=dict)
    last_change: Optional[datetime] = None


__all__ = ["FileEntry", "Profile", "TaskItem", "CatalogStats"]
