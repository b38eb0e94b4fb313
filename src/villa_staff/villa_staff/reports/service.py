from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import TimeWindow, now_local, resolve_period
from ..core.enums import Period, Role
from ..core.exceptions import ValidationError
from ..points.service import PointsLedger, summarize_entries
from ..tasks.repository import TaskRepository
from ..users.repository import UserRepository
from .aggregation import (
    as_percent,
    is_done,
    performance_band,
    points_rate,
    staff_entries,
    sum_task_points,
    sum_violation_points,
    task_completion_rate,
    tasks_for_team,
    tasks_for_user,
)


@dataclass(frozen=True)
class PerformanceSnapshot:
    total_tasks: int
    completed_tasks: int
    possible_points: int
    earned_points: int
    violation_points: int
    actual_points: int
    completion_percent: int
    points_percent: int
    band: str

    def as_dict(self) -> dict:
        return {
            "total_tasks": self.total_tasks,
            "completed_tasks": self.completed_tasks,
            "possible_points": self.possible_points,
            "earned_points": self.earned_points,
            "violation_points": self.violation_points,
            "actual_points": self.actual_points,
            "completion_percent": self.completion_percent,
            "points_percent": self.points_percent,
            "band": self.band,
        }


@dataclass(frozen=True)
class StaffMetric:
    user_id: str
    name: str
    points_total: int
    points_positive: int
    points_negative: int
    tasks_total: int
    tasks_completed: int
    completion_rate: float

    def as_row(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "points_total": self.points_total,
            "points_positive": self.points_positive,
            "points_negative": self.points_negative,
            "tasks_total": self.tasks_total,
            "tasks_completed": self.tasks_completed,
            "completion_rate": f"{self.completion_rate:.1f}",
        }


STAFF_METRIC_FIELDS = [
    "user_id",
    "name",
    "points_total",
    "points_positive",
    "points_negative",
    "tasks_total",
    "tasks_completed",
    "completion_rate",
]


def _snapshot(tasks: Sequence, violations: int, *, team: bool) -> PerformanceSnapshot:
    done = [t for t in tasks if is_done(t)]
    possible = sum_task_points(tasks)
    earned = sum_task_points(done)
    points_percent = as_percent(points_rate(earned, violations, possible))
    return PerformanceSnapshot(
        total_tasks=len(tasks),
        completed_tasks=len(done),
        possible_points=possible,
        earned_points=earned,
        violation_points=violations,
        actual_points=max(0, earned - violations),
        completion_percent=as_percent(task_completion_rate(tasks)),
        points_percent=points_percent,
        band=performance_band(points_percent, team=team),
    )


class ReportService:
    """Read-only aggregation over tasks, point entries and the roster."""

    def __init__(self, tasks: TaskRepository, users: UserRepository, ledger: PointsLedger):
        self._tasks = tasks
        self._users = users
        self._ledger = ledger

    def _window(self, period: Period, now: Optional[datetime], start=None, end=None) -> TimeWindow:
        return resolve_period(period, now or now_local(), start=start, end=end)

    def user_performance(
        self,
        user_id: str,
        period: Period = Period.TODAY,
        *,
        now: Optional[datetime] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> PerformanceSnapshot:
        user = self._users.get_by_id(user_id)
        if not user:
            raise ValidationError("Unknown user")
        window = self._window(period, now, start, end)
        tasks = tasks_for_user(self._tasks.list_tasks(), user, window)
        violations = sum_violation_points(self._ledger.entries_in(window, user.id))
        return _snapshot(tasks, violations, team=False)

    def team_performance(
        self,
        period: Period = Period.THIS_MONTH,
        *,
        now: Optional[datetime] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> PerformanceSnapshot:
        window = self._window(period, now, start, end)
        users_by_id = {u.id: u for u in self._users.list_users()}
        tasks = tasks_for_team(self._tasks.list_tasks(), users_by_id, window)
        violations = sum_violation_points(staff_entries(self._ledger.entries_in(window), users_by_id))
        return _snapshot(tasks, violations, team=True)

    def staff_metrics(self, *, start: datetime, end: datetime) -> list[StaffMetric]:
        window = self._window(Period.CUSTOM, None, start, end)
        entries = self._ledger.entries_in(window)
        tasks = [t for t in self._tasks.list_tasks() if not t.is_template and window.contains(t.created_at)]

        metrics = []
        for user in self._users.list_users(Role.STAFF):
            totals = summarize_entries(e for e in entries if e.user_id == user.id)
            own = [t for t in tasks if t.assigned_to == user.id]
            metrics.append(
                StaffMetric(
                    user_id=user.id,
                    name=user.name,
                    points_total=totals.total,
                    points_positive=totals.positive,
                    points_negative=totals.negative,
                    tasks_total=len(own),
                    tasks_completed=sum(1 for t in own if is_done(t)),
                    completion_rate=task_completion_rate(own) * 100,
                )
            )
        return metrics
