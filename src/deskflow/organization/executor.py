"""Executor for category folder plans."""

from __future__ import annotations

import logging
import shutil

from .models import MoveOutcome, OperationPlan

LOGGER = logging.getLogger(__name__)


class OperationExecutor:
    """Apply move plans, continuing past individual failures."""

    def apply(self, plan: OperationPlan, dry_run: bool = False) -> MoveOutcome:
        """Execute every move in ``plan``.

        Args:
            plan: Plan computed by the planner.
            dry_run: When true, report the moves without touching the disk.

        Returns:
            MoveOutcome: Moves that succeeded and messages for those that failed.
        """
        outcome = MoveOutcome()
        for move_op in plan.moves:
            if dry_run:
                outcome.moved.append(move_op)
                continue
            try:
                move_op.destination.parent.mkdir(parents=True, exist_ok=True)
                if move_op.destination.exists():
                    raise FileExistsError(f"Destination already exists: {move_op.destination}")
                shutil.move(str(move_op.source), str(move_op.destination))
            except OSError as exc:
                LOGGER.warning("Failed to move %s: %s", move_op.source, exc)
                outcome.failed.append(f"{move_op.source.name}: {exc}")
                continue
            outcome.moved.append(move_op)
        return outcome
