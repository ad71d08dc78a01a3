"""Persisted state document models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List

from pydantic import BaseModel, Field, field_validator

from deskflow.catalog.models import FileEntry, Profile, TaskItem


class PersistedState(BaseModel):
    """Whole-document snapshot written on every mutation.

    The document carries no schema version: unknown keys are ignored and
    missing or null lists load as empty.
    """

    files: List[FileEntry] = Field(default_factory=list)
    profiles: List[Profile] = Field(default_factory=list)
    tasks: List[TaskItem] = Field(default_factory=list)
    sort_history: List[List[FileEntry]] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("files", "profiles", "tasks", "sort_history", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


__all__ = ["PersistedState"]
