"""In-memory task store."""

from typing import Optional
from src.models.task import Task
from src.utils.errors import TaskNotFoundError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


class TaskStore:
    """
    Ordered, mutable collection of tasks.

    Insertion order is the listing order. Every method is synchronous, so each
    call runs to completion without interleaving with other coroutines.
    """

    def __init__(self):
        self._tasks: list[Task] = []

    def __len__(self) -> int:
        return len(self._tasks)

    def add(self, task: Task) -> Task:
        """Append a task. Ids are not checked for uniqueness here."""
        self._tasks.append(task)
        logger.info(
            "Task added",
            task_id=task.id,
            category=task.category.value,
            priority=task.priority.value,
            tasks_total=len(self._tasks)
        )
        return task

    def list(self) -> list[Task]:
        """Return all tasks in insertion order."""
        return list(self._tasks)

    def get(self, task_id: str) -> Optional[Task]:
        """Return the first task with the given id, or None."""
        return next((task for task in self._tasks if task.id == task_id), None)

    def update_status(self, task_id: str, status: str) -> Task:
        """Set the status of the first task with the given id and return it."""
        task = self.get(task_id)
        if task is None:
            logger.warning("Status update for unknown task", task_id=task_id)
            raise TaskNotFoundError(task_id)

        previous_status = task.status
        task.status = status
        logger.info(
            "Task status updated",
            task_id=task_id,
            previous_status=previous_status,
            status=status
        )
        return task

    def delete(self, task_id: str) -> Task:
        """Remove the first task with the given id and return it."""
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                del self._tasks[index]
                logger.info("Task deleted", task_id=task_id, tasks_total=len(self._tasks))
                return task

        logger.warning("Delete for unknown task", task_id=task_id)
        raise TaskNotFoundError(task_id)
