"""Organization plan data models."""

from __future__ import annotations

from pathlib import Path
from typing import List
from uuid import UUID

from pydantic import BaseModel, Field


class MoveOperation(BaseModel):
    """Represents moving a cataloged file into its category folder.

    Attributes:
        entry_id: Catalog entry the move belongs to.
        source: Current file path.
        destination: Target path inside the category folder.
        category: Category folder name.
        conflict_applied: Whether the name was suffixed to avoid a collision.
    """

    entry_id: UUID
    source: Path
    destination: Path
    category: str
    conflict_applied: bool = False


class OperationPlan(BaseModel):
    """Aggregated organization plan."""

    moves: List[MoveOperation] = Field(default_factory=list)
    missing: List[UUID] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)


class MoveOutcome(BaseModel):
    """Result of executing a plan."""

    moved: List[MoveOperation] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)
