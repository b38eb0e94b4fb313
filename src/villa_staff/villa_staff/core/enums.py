from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for guards and team aggregation."""

    ADMIN = "admin"
    STAFF = "staff"


class TaskStatus(str, Enum):
    """Task lifecycle states. Rejection routes back to PENDING."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    APPROVED = "approved"


class TaskEvent(str, Enum):
    START = "start"
    COMPLETE = "complete"
    APPROVE = "approve"
    REJECT = "reject"


class TaskType(str, Enum):
    DAILY_MORNING = "Daily Morning"
    ROOM_CLEANING = "Room Cleaning"
    SMALL_CLEANING = "Small Cleaning"
    EXTRA = "Extra"
    HOUSEKEEPING = "Housekeeping"
    RECEPTION = "Reception"


class RuleCategory(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class Period(str, Enum):
    """Reporting periods for point totals and performance snapshots."""

    TODAY = "today"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"
    CUSTOM = "custom"
