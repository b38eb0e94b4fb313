from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Mapping, Optional, Sequence, Union

from ..common.datetime_utils import TimeWindow, now_local, resolve_period
from ..common.ids import new_id
from ..common.validators import optional_text, require_non_empty, require_whole_number
from ..core.constants import CUSTOM_POINTS_REASON, CUSTOM_RULE_ID, MAX_CART_QUANTITY
from ..core.enums import Period, RuleCategory
from ..core.exceptions import ValidationError
from .catalog import RuleCatalog
from .model import CartItem, PointEntry, PointRule, PointTotals, UserViolationCounter
from .multiplier import compute_multiplier
from .repository import PointsRepository

logger = logging.getLogger(__name__)

CartInput = Union[CartItem, Mapping]


def summarize_entries(entries: Iterable[PointEntry]) -> PointTotals:
    positive = 0
    negative = 0
    for e in entries:
        if e.points > 0:
            positive += e.points
        elif e.points < 0:
            negative += abs(e.points)
    return PointTotals(total=positive - negative, positive=positive, negative=negative)


class PointsLedger:
    """Points ledger: rule/custom grants, escalating multipliers, period totals.

    History is re-read from the repository on every call so multiplier
    decisions always see the latest entries written by any device.
    """

    def __init__(self, points: PointsRepository, catalog: RuleCatalog):
        self._points = points
        self._catalog = catalog

    def list_rules(self, category: Optional[RuleCategory] = None) -> list[PointRule]:
        return self._catalog.by_category(RuleCategory(category) if category else None)

    def _normalize_cart(self, items: Sequence[CartInput]) -> list[tuple[PointRule, CartItem]]:
        if not items:
            raise ValidationError("Cart is empty")

        resolved = []
        for raw in items:
            if not isinstance(raw, (CartItem, Mapping)):
                raise ValidationError("Cart items must be objects")
            item = raw if isinstance(raw, CartItem) else CartItem(
                rule_id=str(raw.get("rule_id") or ""),
                quantity=raw.get("quantity", 1),
                custom_reason=raw.get("custom_reason"),
            )
            rule = self._catalog.get(item.rule_id)
            if rule is None:
                raise ValidationError(f"Unknown point rule: {item.rule_id or '-'}")
            quantity = require_whole_number(item.quantity, "Quantity")
            if quantity <= 0:
                raise ValidationError("Quantity must be at least 1")
            if quantity > MAX_CART_QUANTITY:
                raise ValidationError(f"Quantity must be at most {MAX_CART_QUANTITY}")
            resolved.append((rule, replace(item, quantity=quantity, custom_reason=optional_text(item.custom_reason))))
        return resolved

    def _build_entries(
        self,
        user_id: str,
        cart: list[tuple[PointRule, CartItem]],
        assigned_by: str,
        now: datetime,
    ) -> list[PointEntry]:
        history = list(self._points.list_entries())
        created: list[PointEntry] = []

        for rule, item in cart:
            for _ in range(item.quantity):
                multiplier = compute_multiplier(history, user_id, rule.id, now, self._catalog)
                entry = PointEntry(
                    id=new_id(),
                    user_id=user_id,
                    rule_id=rule.id,
                    points=rule.base_points * multiplier,
                    reason=rule.name,
                    custom_reason=item.custom_reason,
                    assigned_by=assigned_by,
                    assigned_at=now,
                    multiplier=multiplier,
                )
                # Later units of the same batch must see this one as history.
                history.append(entry)
                created.append(entry)
        return created

    def preview_cart_total(
        self,
        user_id: str,
        items: Sequence[CartInput],
        *,
        now: Optional[datetime] = None,
    ) -> int:
        user_id = require_non_empty(user_id, "User")
        cart = self._normalize_cart(items)
        entries = self._build_entries(user_id, cart, "", now or now_local())
        return sum(e.points for e in entries)

    def assign_points(
        self,
        user_id: str,
        items: Sequence[CartInput],
        assigned_by: str,
        *,
        now: Optional[datetime] = None,
    ) -> list[PointEntry]:
        user_id = require_non_empty(user_id, "User")
        cart = self._normalize_cart(items)
        now = now or now_local()

        entries = self._build_entries(user_id, cart, assigned_by, now)
        self._points.append_entries(entries)

        negative = [e for e in entries if self._catalog.get(e.rule_id).is_negative]
        if negative:
            self._bump_violation_counters(negative)

        logger.info(
            "Assigned %d point entries (%+d) to user %s by %s",
            len(entries), sum(e.points for e in entries), user_id, assigned_by,
        )
        return entries

    def assign_custom_points(
        self,
        user_id: str,
        points: int,
        reason: str,
        assigned_by: str,
        *,
        now: Optional[datetime] = None,
    ) -> PointEntry:
        user_id = require_non_empty(user_id, "User")
        points = require_whole_number(points, "Points")
        if points == 0:
            raise ValidationError("Points must not be 0")
        reason = require_non_empty(reason, "Reason")

        entry = PointEntry(
            id=new_id(),
            user_id=user_id,
            rule_id=CUSTOM_RULE_ID,
            points=points,
            reason=CUSTOM_POINTS_REASON,
            custom_reason=reason,
            assigned_by=assigned_by,
            assigned_at=now or now_local(),
            multiplier=1,
        )
        self._points.append_entries([entry])
        logger.info("Assigned custom points %+d to user %s by %s", points, user_id, assigned_by)
        return entry

    def _bump_violation_counters(self, entries: Sequence[PointEntry]) -> None:
        counters = {(c.user_id, c.rule_id): c for c in self._points.list_violation_counters()}
        touched: dict[tuple[str, str], UserViolationCounter] = {}
        for e in entries:
            key = (e.user_id, e.rule_id)
            current = touched.get(key) or counters.get(key)
            if current is None:
                touched[key] = UserViolationCounter(e.user_id, e.rule_id, 1, e.assigned_at)
            else:
                touched[key] = replace(current, count=current.count + 1, last_occurrence=e.assigned_at)
        self._points.save_violation_counters(list(touched.values()))

    def list_violation_counters(self, user_id: Optional[str] = None) -> list[UserViolationCounter]:
        return [c for c in self._points.list_violation_counters() if user_id is None or c.user_id == user_id]

    def entries_in(self, window: TimeWindow, user_id: Optional[str] = None) -> list[PointEntry]:
        return [
            e for e in self._points.list_entries()
            if (user_id is None or e.user_id == user_id) and window.contains(e.assigned_at)
        ]

    def list_user_entries(
        self,
        user_id: str,
        period: Period = Period.THIS_MONTH,
        *,
        now: Optional[datetime] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[PointEntry]:
        window = resolve_period(period, now or now_local(), start=start, end=end)
        entries = self.entries_in(window, user_id)
        entries.sort(key=lambda e: e.assigned_at, reverse=True)
        return entries

    def get_user_total(
        self,
        user_id: str,
        period: Period = Period.TODAY,
        *,
        now: Optional[datetime] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> PointTotals:
        window = resolve_period(period, now or now_local(), start=start, end=end)
        return summarize_entries(self.entries_in(window, user_id))
