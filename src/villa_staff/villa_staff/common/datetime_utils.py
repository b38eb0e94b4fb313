from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..core.enums import Period
from ..core.exceptions import ValidationError


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def parse_iso(value) -> Optional[datetime]:
    """Accept ISO strings (local cache) or datetimes (MySQL driver)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(moment: datetime) -> datetime:
    return start_of_day(moment).replace(day=1)


def start_of_next_month(moment: datetime) -> datetime:
    first = start_of_month(moment)
    if first.month == 12:
        return first.replace(year=first.year + 1, month=1)
    return first.replace(month=first.month + 1)


@dataclass(frozen=True)
class TimeWindow:
    """Time range used for period filters.

    `closed` windows include `end`; open ones stop just before it.
    """

    start: datetime
    end: datetime
    closed: bool = False

    def contains(self, moment: Optional[datetime]) -> bool:
        if moment is None or moment < self.start:
            return False
        return moment <= self.end if self.closed else moment < self.end


def resolve_period(
    period: Period,
    now: datetime,
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    week_days: int = 7,
) -> TimeWindow:
    period = Period(period)
    if period == Period.TODAY:
        day = start_of_day(now)
        return TimeWindow(day, day + timedelta(days=1))
    if period == Period.THIS_WEEK:
        return TimeWindow(now - timedelta(days=week_days), now, closed=True)
    if period == Period.THIS_MONTH:
        return TimeWindow(start_of_month(now), start_of_next_month(now))

    if start is None or end is None:
        raise ValidationError("A custom period needs both start and end")
    if end < start:
        raise ValidationError("End of period must not be before its start")
    return TimeWindow(start, end, closed=True)
