from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..common.validators import optional_text
from ..core.enums import Role, TaskEvent, TaskStatus
from ..core.exceptions import GuardError, ValidationError
from .model import CompletionReport, Task

TRANSITIONS: dict[tuple[TaskStatus, TaskEvent], TaskStatus] = {
    (TaskStatus.PENDING, TaskEvent.START): TaskStatus.IN_PROGRESS,
    (TaskStatus.IN_PROGRESS, TaskEvent.COMPLETE): TaskStatus.COMPLETED,
    (TaskStatus.COMPLETED, TaskEvent.APPROVE): TaskStatus.APPROVED,
    (TaskStatus.COMPLETED, TaskEvent.REJECT): TaskStatus.PENDING,
}


def next_status(task: Task, event: TaskEvent) -> TaskStatus:
    if task.is_template:
        raise GuardError("Templates cannot change status")
    target = TRANSITIONS.get((task.status, TaskEvent(event)))
    if target is None:
        raise GuardError(f"Cannot {TaskEvent(event).value} a task that is {task.status.value}")
    return target


def _require_assignee(task: Task, actor_id: str) -> None:
    if not task.is_unassigned and not task.is_assignee(actor_id):
        raise GuardError("Only an assigned worker can work on this task")


def _require_admin(actor_role: Role) -> None:
    if actor_role != Role.ADMIN:
        raise GuardError("Only admins can review tasks")


def apply_event(
    task: Task,
    event: TaskEvent,
    *,
    actor_id: str,
    actor_role: Role,
    now: datetime,
    completion: Optional[CompletionReport] = None,
    reason: Optional[str] = None,
) -> Task:
    """Return the task after `event`, or raise without touching it.

    `GuardError` for a forbidden move (wrong state, template, actor or
    missing photo); `ValidationError` for a blank rejection reason.
    """
    event = TaskEvent(event)
    target = next_status(task, event)

    if event == TaskEvent.START:
        _require_assignee(task, actor_id)
        return replace(task, status=target)

    if event == TaskEvent.COMPLETE:
        _require_assignee(task, actor_id)
        completion = completion or CompletionReport()
        photo = optional_text(completion.photo)
        if task.requires_completion_photo and not photo:
            raise GuardError("A completion photo is required for this task")
        return replace(
            task,
            status=target,
            completed_by=actor_id,
            completed_at=now,
            completion_photo=photo,
            completion_notes=optional_text(completion.notes),
            second_worker_involved=optional_text(completion.second_worker_involved),
            completion_count=task.completion_count + 1,
        )

    _require_admin(actor_role)
    if event == TaskEvent.APPROVE:
        return replace(task, status=target, approved_at=now)

    reason = optional_text(reason)
    if not reason:
        raise ValidationError("Rejection reason is required")
    return replace(task, status=target, rejected_at=now, rejection_reason=reason)
