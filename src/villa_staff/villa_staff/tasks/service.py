from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.ids import new_id
from ..common.validators import optional_text, require_non_empty, require_non_negative
from ..core.enums import Role, TaskEvent, TaskStatus, TaskType
from ..core.exceptions import GuardError, ValidationError
from ..users.model import User
from .model import CompletionReport, NewTask, Task
from .repository import TaskRepository
from .transitions import apply_event

logger = logging.getLogger(__name__)

ROOM_TASK_TYPES = frozenset({TaskType.ROOM_CLEANING, TaskType.SMALL_CLEANING})
SECOND_ASSIGNEE_TASK_TYPES = frozenset({TaskType.ROOM_CLEANING, TaskType.SMALL_CLEANING, TaskType.EXTRA})


def instantiate_template(template: Task, assigned_by: str, now: datetime) -> Task:
    """Fresh, pending copy of a template; completion history is not carried over."""
    if not template.is_template:
        raise ValidationError("Task is not a template")
    return replace(
        template,
        id=new_id(),
        assigned_by=assigned_by,
        created_at=now,
        status=TaskStatus.PENDING,
        completed_at=None,
        approved_at=None,
        rejected_at=None,
        rejection_reason=None,
        completion_photo=None,
        completion_notes=None,
        completed_by=None,
        second_worker_involved=None,
        completion_count=0,
        is_template=False,
    )


def action_label(task: Task) -> str:
    """Button hint shown to the worker for the task's next step."""
    repeat = task.completion_count > 0
    if task.status == TaskStatus.PENDING:
        return "Me clean again" if repeat else "Me do"
    if task.status == TaskStatus.IN_PROGRESS:
        return "Me clean again" if repeat else "Me do already"
    return "Erledigt"


class TaskService:
    def __init__(self, tasks: TaskRepository):
        self._tasks = tasks

    def _get(self, task_id: str) -> Task:
        task = self._tasks.get_by_id(task_id)
        if not task:
            raise ValidationError("Task not found")
        return task

    def create_task(self, *, current_role: Role, current_user_id: str, data: NewTask, now: Optional[datetime] = None) -> Task:
        if current_role != Role.ADMIN:
            raise GuardError("Only admins can create tasks")

        task_type = TaskType(data.task_type)
        if task_type in ROOM_TASK_TYPES:
            room = optional_text(data.room)
            if not room:
                raise ValidationError("Room is required for this task type")
            title = f"{task_type.value} - {room}"
        else:
            room = None
            title = require_non_empty(data.title, "Title")

        assigned_to2 = optional_text(data.assigned_to2) if task_type in SECOND_ASSIGNEE_TASK_TYPES else None

        task = Task(
            id=new_id(),
            task_type=task_type,
            title=title,
            room=room,
            description=(data.description or "").strip(),
            assigned_to=optional_text(data.assigned_to),
            assigned_to2=assigned_to2,
            assigned_by=current_user_id,
            created_at=now or now_local(),
            duration=require_non_negative(data.duration, "Duration"),
            points=require_non_negative(data.points, "Points"),
            deadline=data.deadline,
            requires_completion_photo=bool(data.requires_completion_photo),
            is_template=bool(data.is_template),
            is_recurring=bool(data.is_recurring),
        )
        self._tasks.save(task)
        logger.info("Task %s created by %s (%s)", task.id, current_user_id, task.title)
        return task

    def delete_task(self, *, current_role: Role, task_id: str) -> None:
        if current_role != Role.ADMIN:
            raise GuardError("Only admins can delete tasks")
        if not self._tasks.delete(task_id):
            raise ValidationError("Task not found")
        logger.info("Task %s deleted", task_id)

    def _transition(
        self,
        task_id: str,
        event: TaskEvent,
        *,
        current_user_id: str,
        current_role: Role,
        now: Optional[datetime],
        completion: Optional[CompletionReport] = None,
        reason: Optional[str] = None,
    ) -> Task:
        task = self._get(task_id)
        updated = apply_event(
            task,
            event,
            actor_id=current_user_id,
            actor_role=current_role,
            now=now or now_local(),
            completion=completion,
            reason=reason,
        )
        self._tasks.save(updated)
        logger.info(
            "Task %s: %s -> %s by %s", task.id, task.status.value, updated.status.value, current_user_id
        )
        return updated

    def start(self, task_id: str, *, current_user_id: str, current_role: Role, now: Optional[datetime] = None) -> Task:
        return self._transition(task_id, TaskEvent.START, current_user_id=current_user_id, current_role=current_role, now=now)

    def complete(
        self,
        task_id: str,
        *,
        current_user_id: str,
        current_role: Role,
        completion: Optional[CompletionReport] = None,
        now: Optional[datetime] = None,
    ) -> Task:
        return self._transition(
            task_id,
            TaskEvent.COMPLETE,
            current_user_id=current_user_id,
            current_role=current_role,
            now=now,
            completion=completion,
        )

    def approve(self, task_id: str, *, current_user_id: str, current_role: Role, now: Optional[datetime] = None) -> Task:
        return self._transition(task_id, TaskEvent.APPROVE, current_user_id=current_user_id, current_role=current_role, now=now)

    def reject(
        self,
        task_id: str,
        reason: str,
        *,
        current_user_id: str,
        current_role: Role,
        now: Optional[datetime] = None,
    ) -> Task:
        return self._transition(
            task_id,
            TaskEvent.REJECT,
            current_user_id=current_user_id,
            current_role=current_role,
            now=now,
            reason=reason,
        )

    def list_tasks(self) -> Sequence[Task]:
        return [t for t in self._tasks.list_tasks() if not t.is_template]

    def list_visible_tasks(self, user: User) -> list[Task]:
        tasks = self.list_tasks()
        if user.is_admin:
            return list(tasks)
        return [t for t in tasks if t.is_unassigned or t.is_assignee(user.id)]

    def list_templates(self) -> list[Task]:
        return [t for t in self._tasks.list_tasks() if t.is_template]

    def instantiate(
        self,
        template_id: str,
        *,
        current_role: Role,
        assigned_by: str,
        now: Optional[datetime] = None,
    ) -> Task:
        if current_role != Role.ADMIN:
            raise GuardError("Only admins can create tasks from templates")
        task = instantiate_template(self._get(template_id), assigned_by, now or now_local())
        self._tasks.save(task)
        logger.info("Template %s instantiated as task %s", template_id, task.id)
        return task
