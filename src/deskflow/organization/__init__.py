"""Category folder organization."""

from .executor import OperationExecutor
from .models import MoveOperation, MoveOutcome, OperationPlan
from .planner import OrganizerPlanner

__all__ = ["OperationExecutor", "MoveOperation", "MoveOutcome", "OperationPlan", "OrganizerPlanner"]
