from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from ..core.constants import (
    BASE_MULTIPLIER,
    VIOLATION_MULTIPLIER,
    VIOLATION_REPEAT_THRESHOLD,
    VIOLATION_WINDOW_DAYS,
)
from .catalog import RuleCatalog
from .model import PointEntry


def compute_multiplier(
    history: Iterable[PointEntry],
    user_id: str,
    rule_id: str,
    now: datetime,
    catalog: RuleCatalog,
    *,
    window: timedelta = timedelta(days=VIOLATION_WINDOW_DAYS),
) -> int:
    """Multiplier for the next entry of `rule_id` granted to `user_id`.

    Only negative-category rules escalate. Prior entries for the same pair in
    `[now - window, now]` are counted; from the threshold on (the 3rd
    occurrence) the points are doubled. Never grows past the doubled value.
    """
    rule = catalog.get(rule_id)
    if rule is None or not rule.is_negative:
        return BASE_MULTIPLIER

    window_start = now - window
    prior = sum(
        1
        for e in history
        if e.user_id == user_id and e.rule_id == rule_id and window_start <= e.assigned_at <= now
    )
    return VIOLATION_MULTIPLIER if prior >= VIOLATION_REPEAT_THRESHOLD else BASE_MULTIPLIER
