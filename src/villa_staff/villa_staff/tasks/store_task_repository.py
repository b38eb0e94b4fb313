from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.constants import COLLECTION_TASKS
from ..storage.gateway import PersistenceGateway
from .model import Task
from .repository import TaskRepository


class StoreTaskRepository(TaskRepository):
    def __init__(self, gateway: PersistenceGateway):
        self._gateway = gateway

    def list_tasks(self) -> Sequence[Task]:
        tasks = [Task.from_record(r) for r in self._gateway.load(COLLECTION_TASKS)]
        tasks.sort(key=lambda t: t.created_at or datetime.min, reverse=True)
        return tasks

    def get_by_id(self, task_id: str) -> Optional[Task]:
        for task in self.list_tasks():
            if task.id == str(task_id):
                return task
        return None

    def save(self, task: Task) -> None:
        self._gateway.save(COLLECTION_TASKS, [task.to_record()])

    def delete(self, task_id: str) -> bool:
        return self._gateway.delete(COLLECTION_TASKS, str(task_id))
