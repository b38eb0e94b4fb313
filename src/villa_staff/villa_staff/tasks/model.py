from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import parse_iso, to_iso
from ..core.constants import DEFAULT_TASK_DURATION, DEFAULT_TASK_POINTS
from ..core.enums import TaskStatus, TaskType

_DATETIME_FIELDS = ("deadline", "created_at", "completed_at", "approved_at", "rejected_at")


@dataclass(frozen=True)
class Task:
    """Assignable unit of work.

    Note: a template (`is_template=True`) is a blueprint only; it never
    changes status and is cloned via `instantiate_template`.
    """

    id: str
    task_type: TaskType
    title: str
    assigned_by: str
    created_at: datetime
    status: TaskStatus = TaskStatus.PENDING
    room: Optional[str] = None
    description: str = ""
    assigned_to: Optional[str] = None
    assigned_to2: Optional[str] = None
    duration: int = DEFAULT_TASK_DURATION
    points: int = DEFAULT_TASK_POINTS
    deadline: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    requires_completion_photo: bool = False
    completion_photo: Optional[str] = None
    completion_notes: Optional[str] = None
    completed_by: Optional[str] = None
    second_worker_involved: Optional[str] = None
    completion_count: int = 0
    is_template: bool = False
    is_recurring: bool = False

    @property
    def is_unassigned(self) -> bool:
        return not self.assigned_to and not self.assigned_to2

    def is_assignee(self, user_id: str) -> bool:
        return bool(user_id) and user_id in (self.assigned_to, self.assigned_to2)

    def to_record(self) -> dict:
        record = {
            "id": self.id,
            "task_type": self.task_type.value,
            "title": self.title,
            "room": self.room,
            "description": self.description,
            "assigned_to": self.assigned_to,
            "assigned_to2": self.assigned_to2,
            "assigned_by": self.assigned_by,
            "status": self.status.value,
            "duration": self.duration,
            "points": self.points,
            "rejection_reason": self.rejection_reason,
            "requires_completion_photo": self.requires_completion_photo,
            "completion_photo": self.completion_photo,
            "completion_notes": self.completion_notes,
            "completed_by": self.completed_by,
            "second_worker_involved": self.second_worker_involved,
            "completion_count": self.completion_count,
            "is_template": self.is_template,
            "is_recurring": self.is_recurring,
        }
        for name in _DATETIME_FIELDS:
            record[name] = to_iso(getattr(self, name))
        return record

    @classmethod
    def from_record(cls, r: dict) -> "Task":
        return cls(
            id=str(r["id"]),
            task_type=TaskType(r["task_type"]),
            title=str(r.get("title") or ""),
            room=r.get("room") or None,
            description=str(r.get("description") or ""),
            assigned_to=r.get("assigned_to") or None,
            assigned_to2=r.get("assigned_to2") or None,
            assigned_by=str(r.get("assigned_by") or ""),
            status=TaskStatus(r.get("status") or TaskStatus.PENDING.value),
            duration=int(r.get("duration") or 0),
            points=int(r.get("points") or 0),
            deadline=parse_iso(r.get("deadline")),
            created_at=parse_iso(r.get("created_at")),
            completed_at=parse_iso(r.get("completed_at")),
            approved_at=parse_iso(r.get("approved_at")),
            rejected_at=parse_iso(r.get("rejected_at")),
            rejection_reason=r.get("rejection_reason") or None,
            requires_completion_photo=bool(r.get("requires_completion_photo")),
            completion_photo=r.get("completion_photo") or None,
            completion_notes=r.get("completion_notes") or None,
            completed_by=r.get("completed_by") or None,
            second_worker_involved=r.get("second_worker_involved") or None,
            completion_count=int(r.get("completion_count") or 0),
            is_template=bool(r.get("is_template")),
            is_recurring=bool(r.get("is_recurring")),
        )


@dataclass(frozen=True)
class NewTask:
    """Admin input for `TaskService.create_task`, validated there."""

    task_type: TaskType
    title: str = ""
    room: Optional[str] = None
    description: str = ""
    assigned_to: Optional[str] = None
    assigned_to2: Optional[str] = None
    duration: int = DEFAULT_TASK_DURATION
    points: int = DEFAULT_TASK_POINTS
    deadline: Optional[datetime] = None
    requires_completion_photo: bool = False
    is_template: bool = False
    is_recurring: bool = False


@dataclass(frozen=True)
class CompletionReport:
    """What the worker submits with `complete`."""

    photo: Optional[str] = None
    notes: Optional[str] = None
    second_worker_involved: Optional[str] = None
