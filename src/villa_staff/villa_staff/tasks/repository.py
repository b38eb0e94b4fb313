from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Task


class TaskRepository(Protocol):
    def list_tasks(self) -> Sequence[Task]:
        """All tasks including templates, newest first."""

        raise NotImplementedError

    def get_by_id(self, task_id: str) -> Optional[Task]:
        raise NotImplementedError

    def save(self, task: Task) -> None:
        raise NotImplementedError

    def delete(self, task_id: str) -> bool:
        raise NotImplementedError
