from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from ..common.datetime_utils import TimeWindow
from ..core.enums import Role, TaskStatus
from ..points.model import PointEntry
from ..tasks.model import Task
from ..users.model import User

DONE_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.APPROVED})

_USER_BANDS = (
    (95, "Hervorragend"),
    (88, "Sehr gut"),
    (80, "Gut"),
    (71, "Solide"),
)
_TEAM_BANDS = (
    (95, "Fantastisches Team"),
    (88, "Starkes Team"),
    (80, "Gutes Teamwork"),
    (71, "Team auf gutem Weg"),
)


def is_done(task: Task) -> bool:
    return task.status in DONE_STATUSES


def task_completion_rate(tasks: Sequence[Task]) -> float:
    """Share of completed-or-approved tasks; 0.0 for an empty list."""
    if not tasks:
        return 0.0
    return sum(1 for t in tasks if is_done(t)) / len(tasks)


def points_rate(earned: int, violations: int, possible: int) -> float:
    if possible <= 0:
        return 0.0
    return max(0, earned - violations) / possible


def as_percent(rate: float) -> int:
    # Half-up; rates are never negative.
    return int(rate * 100 + 0.5)


def performance_band(percentage: int, team: bool = False) -> str:
    if percentage == 0:
        return "Das Team startet durch" if team else "Jetzt gehts los"
    for threshold, label in _TEAM_BANDS if team else _USER_BANDS:
        if percentage >= threshold:
            return label
    return "Team gibt alles" if team else "Dranbleiben..noch ist alles schaffbar"


def sum_task_points(tasks: Iterable[Task]) -> int:
    return sum(t.points for t in tasks)


def sum_violation_points(entries: Iterable[PointEntry]) -> int:
    return sum(abs(e.points) for e in entries if e.points < 0)


def tasks_for_user(tasks: Iterable[Task], user: User, window: TimeWindow) -> list[Task]:
    """Non-template tasks in the window owned by `user`; staff also own unassigned ones."""
    out = []
    for t in tasks:
        if t.is_template or not window.contains(t.created_at):
            continue
        if t.assigned_to == user.id or (not t.assigned_to and user.role == Role.STAFF):
            out.append(t)
    return out


def tasks_for_team(tasks: Iterable[Task], users_by_id: Mapping[str, User], window: TimeWindow) -> list[Task]:
    out = []
    for t in tasks:
        if t.is_template or not window.contains(t.created_at):
            continue
        if not t.assigned_to:
            out.append(t)
            continue
        owner = users_by_id.get(t.assigned_to)
        if owner is not None and owner.role == Role.STAFF:
            out.append(t)
    return out


def staff_entries(entries: Iterable[PointEntry], users_by_id: Mapping[str, User]) -> list[PointEntry]:
    return [
        e for e in entries
        if e.user_id in users_by_id and users_by_id[e.user_id].role == Role.STAFF
    ]
