"""Planner for category folder moves."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from deskflow.catalog import FileEntry, path_key

from .models import MoveOperation, OperationPlan

UNCATEGORIZED_FOLDER = "Uncategorized"


class OrganizerPlanner:
    """Derive category folder moves from catalog entries."""

    def build_plan(self, entries: Iterable[FileEntry], sort_directory: Path) -> OperationPlan:
        """Plan one move per entry whose file still exists.

        Args:
            entries: Catalog entries in display order.
            sort_directory: Directory that receives one folder per category.

        Returns:
            OperationPlan: Moves for existing files and ids of missing ones.
        """
        plan = OperationPlan()
        occupied: set[str] = set()

        for entry in entries:
            source = Path(entry.path)
            if not source.is_file():
                plan.missing.append(entry.id)
                continue

            folder = sort_directory / (entry.category or UNCATEGORIZED_FOLDER)
            candidate = folder / (entry.name or source.name)
            if path_key(candidate) == path_key(source):
                plan.notes.append(f"{entry.name} is already in {folder.name}.")
                continue

            destination, conflict = self._resolve_conflict(candidate, occupied)
            occupied.add(path_key(destination))
            plan.moves.append(
                MoveOperation(
                    entry_id=entry.id,
                    source=source,
                    destination=destination,
                    category=folder.name,
                    conflict_applied=conflict,
                )
            )
            if conflict:
                plan.notes.append(f"Renamed {candidate.name} to {destination.name} to avoid a collision.")

        return plan

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _resolve_conflict(self, candidate: Path, occupied: set[str]) -> tuple[Path, bool]:
        if not self._taken(candidate, occupied):
            return candidate, False

        counter = 1
        while True:
            alternative = candidate.with_name(f"{candidate.stem} ({counter}){candidate.suffix}")
            if not self._taken(alternative, occupied):
                return alternative, True
            counter += 1

    def _taken(self, path: Path, occupied: set[str]) -> bool:
        return path.exists() or path_key(path) in occupied
