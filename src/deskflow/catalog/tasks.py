"""To-do list persisted alongside the catalog."""

from __future__ import annotations

from typing import Iterable
from uuid import UUID

from .catalog import Catalog
from .errors import EmptyNameError, NotFoundError
from .models import TaskItem


class TaskList:
    """Ordered task items sharing the catalog's mutation lock."""

    def __init__(self, catalog: Catalog, tasks: Iterable[TaskItem] = ()) -> None:
        self._catalog = catalog
        self._tasks: list[TaskItem] = list(tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    @property
    def tasks(self) -> list[TaskItem]:
        return list(self._tasks)

    @property
    def completed_count(self) -> int:
        return sum(1 for task in self._tasks if task.completed)

    def get(self, task_id: UUID) -> TaskItem:
        for task in self._tasks:
            if task.id == task_id:
                return task
        raise NotFoundError(f"No task with id {task_id}")

    def add(self, text: str) -> TaskItem:
        """Append a new, incomplete task.

        Raises:
            EmptyNameError: If ``text`` is blank.
        """
        if not text or not text.strip():
            raise EmptyNameError("Task text must not be blank.")
        task = TaskItem(text=text.strip())
        with self._catalog.lock:
            self._tasks.append(task)
        return task

    def set_completed(self, task_id: UUID, completed: bool) -> TaskItem:
        with self._catalog.lock:
            task = self.get(task_id)
            task.completed = completed
            return task

    def toggle(self, task_id: UUID) -> TaskItem:
        with self._catalog.lock:
            task = self.get(task_id)
            task.completed = not task.completed
            return task

    def remove(self, task_id: UUID) -> TaskItem:
        with self._catalog.lock:
            task = self.get(task_id)
            self._tasks.remove(task)
            return task

    def replace_all(self, tasks: Iterable[TaskItem]) -> None:
        with self._catalog.lock:
            self._tasks = list(tasks)


__all__ = ["TaskList"]
