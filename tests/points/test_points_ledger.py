from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.villa_staff.villa_staff.core.constants import MAX_CART_QUANTITY
from src.villa_staff.villa_staff.core.enums import Period, RuleCategory
from src.villa_staff.villa_staff.core.exceptions import ValidationError
from src.villa_staff.villa_staff.points.catalog import RuleCatalog
from src.villa_staff.villa_staff.points.model import CartItem, PointEntry, PointRule
from src.villa_staff.villa_staff.points.multiplier import compute_multiplier
from src.villa_staff.villa_staff.points.service import PointsLedger

NOW = datetime(2026, 3, 10, 9, 0, 0)

CATALOG = RuleCatalog(
    [
        PointRule("late", "Zuspätkommen", -5, RuleCategory.NEGATIVE),
        PointRule("lights-on", "Licht anlassen", -1, RuleCategory.NEGATIVE),
        PointRule("punctual", "Pünktlicher Arbeitsbeginn", 5, RuleCategory.POSITIVE),
    ]
)


class FakePointsRepo:
    def __init__(self, entries=None):
        self.entries: list[PointEntry] = list(entries or [])
        self.counters = {}
        self.append_calls = 0

    def list_entries(self):
        return list(self.entries)

    def append_entries(self, entries):
        self.append_calls += 1
        self.entries.extend(entries)

    def list_violation_counters(self):
        return list(self.counters.values())

    def save_violation_counters(self, counters):
        for c in counters:
            self.counters[(c.user_id, c.rule_id)] = c


def _entry(user_id: str, rule_id: str, at: datetime, points: int = -5) -> PointEntry:
    return PointEntry(
        id=f"{user_id}-{rule_id}-{at.isoformat()}",
        user_id=user_id,
        rule_id=rule_id,
        points=points,
        reason=rule_id,
        assigned_by="admin",
        assigned_at=at,
    )


def test_fourth_late_within_an_hour_gives_minus_5_5_10_10():
    repo = FakePointsRepo()
    ledger = PointsLedger(repo, CATALOG)

    points = []
    for minute in range(4):
        [entry] = ledger.assign_points("u1", [CartItem("late")], "admin", now=NOW + timedelta(minutes=minute * 15))
        points.append(entry.points)

    assert points == [-5, -5, -10, -10]
    assert [e.multiplier for e in repo.entries] == [1, 1, 2, 2]


def test_quantity_expands_with_running_history_inside_one_batch():
    repo = FakePointsRepo()
    ledger = PointsLedger(repo, CATALOG)

    entries = ledger.assign_points("u1", [CartItem("late", quantity=3)], "admin", now=NOW)

    assert [e.points for e in entries] == [-5, -5, -10]
    assert repo.append_calls == 1
    assert repo.counters[("u1", "late")].count == 3


def test_multiplier_ignores_other_users_and_rules():
    history = [_entry("u1", "late", NOW - timedelta(hours=2))]
    base = compute_multiplier(history, "u1", "late", NOW, CATALOG)

    noisy = history + [
        _entry("u2", "late", NOW - timedelta(hours=1)),
        _entry("u2", "late", NOW - timedelta(hours=1)),
        _entry("u1", "lights-on", NOW - timedelta(hours=1), points=-1),
        _entry("u1", "lights-on", NOW - timedelta(hours=1), points=-1),
    ]

    assert base == 1
    assert compute_multiplier(noisy, "u1", "late", NOW, CATALOG) == base


def test_multiplier_window_is_trailing_seven_days():
    history = [
        _entry("u1", "late", NOW - timedelta(days=8)),
        _entry("u1", "late", NOW - timedelta(days=6)),
    ]
    assert compute_multiplier(history, "u1", "late", NOW, CATALOG) == 1

    history.append(_entry("u1", "late", NOW - timedelta(days=7)))
    assert compute_multiplier(history, "u1", "late", NOW, CATALOG) == 2


def test_entries_after_now_do_not_count_towards_repeats():
    history = [
        _entry("u1", "late", NOW + timedelta(hours=1)),
        _entry("u1", "late", NOW + timedelta(hours=2)),
    ]
    assert compute_multiplier(history, "u1", "late", NOW, CATALOG) == 1

    history.append(_entry("u1", "late", NOW - timedelta(days=7)))
    assert compute_multiplier(history, "u1", "late", NOW, CATALOG) == 1

    history.append(_entry("u1", "late", NOW))
    assert compute_multiplier(history, "u1", "late", NOW, CATALOG) == 2


def test_positive_rules_never_escalate():
    history = [_entry("u1", "punctual", NOW - timedelta(hours=h), points=5) for h in range(1, 5)]
    assert compute_multiplier(history, "u1", "punctual", NOW, CATALOG) == 1


def test_custom_points_always_use_multiplier_one():
    repo = FakePointsRepo([_entry("u1", "custom", NOW - timedelta(hours=h), points=-3) for h in range(1, 4)])
    ledger = PointsLedger(repo, CATALOG)

    entry = ledger.assign_custom_points("u1", -3, "  Küche nicht geputzt ", "admin", now=NOW)

    assert entry.multiplier == 1
    assert entry.points == -3
    assert entry.rule_id == "custom"
    assert entry.reason == "Individuelle Punktevergabe"
    assert entry.custom_reason == "Küche nicht geputzt"


@pytest.mark.parametrize(
    "user_id, points, reason",
    [
        ("u1", 0, "reason"),
        ("u1", 5, "   "),
        ("", 5, "reason"),
    ],
)
def test_custom_points_validation(user_id, points, reason):
    repo = FakePointsRepo()
    ledger = PointsLedger(repo, CATALOG)

    with pytest.raises(ValidationError):
        ledger.assign_custom_points(user_id, points, reason, "admin", now=NOW)
    assert repo.entries == []


def test_invalid_cart_writes_nothing():
    repo = FakePointsRepo()
    ledger = PointsLedger(repo, CATALOG)

    with pytest.raises(ValidationError):
        ledger.assign_points("u1", [], "admin", now=NOW)
    with pytest.raises(ValidationError):
        ledger.assign_points("u1", [CartItem("late"), CartItem("nope")], "admin", now=NOW)
    with pytest.raises(ValidationError):
        ledger.assign_points("u1", [CartItem("late", quantity=0)], "admin", now=NOW)

    assert repo.entries == []
    assert repo.counters == {}


def test_cart_accepts_plain_dicts():
    repo = FakePointsRepo()
    ledger = PointsLedger(repo, CATALOG)

    entries = ledger.assign_points(
        "u1", [{"rule_id": "punctual", "quantity": 2, "custom_reason": "früh da"}], "admin", now=NOW
    )

    assert [e.points for e in entries] == [5, 5]
    assert entries[0].custom_reason == "früh da"
    assert repo.counters == {}


def test_preview_matches_assignment_and_writes_nothing():
    repo = FakePointsRepo([_entry("u1", "late", NOW - timedelta(days=1))])
    ledger = PointsLedger(repo, CATALOG)

    total = ledger.preview_cart_total("u1", [CartItem("late", quantity=2), CartItem("punctual")], now=NOW)

    assert total == -5 + -10 + 5
    assert len(repo.entries) == 1


def test_weekly_total_scenario():
    repo = FakePointsRepo()
    ledger = PointsLedger(repo, CATALOG)
    t0 = datetime(2026, 3, 1, 8, 0, 0)

    for day in range(3):
        ledger.assign_points("u1", [CartItem("late")], "admin", now=t0 + timedelta(days=day))

    assert [e.points for e in repo.entries] == [-5, -5, -10]
    totals = ledger.get_user_total("u1", Period.THIS_WEEK, now=t0 + timedelta(days=2, hours=1))
    assert totals.as_dict() == {"total": -20, "positive": 0, "negative": 20}


def test_today_and_custom_totals():
    repo = FakePointsRepo(
        [
            _entry("u1", "punctual", datetime(2026, 3, 10, 7, 0), points=5),
            _entry("u1", "late", datetime(2026, 3, 9, 23, 59), points=-5),
        ]
    )
    ledger = PointsLedger(repo, CATALOG)

    today = ledger.get_user_total("u1", Period.TODAY, now=NOW)
    assert (today.total, today.positive, today.negative) == (5, 5, 0)

    custom = ledger.get_user_total(
        "u1", Period.CUSTOM, now=NOW, start=datetime(2026, 3, 9), end=datetime(2026, 3, 10, 7, 0)
    )
    assert (custom.total, custom.positive, custom.negative) == (0, 5, 5)

    with pytest.raises(ValidationError):
        ledger.get_user_total("u1", Period.CUSTOM, now=NOW, start=datetime(2026, 3, 10))
    with pytest.raises(ValidationError):
        ledger.get_user_total("u1", Period.CUSTOM, now=NOW, start=datetime(2026, 3, 10), end=datetime(2026, 3, 9))


def test_list_rules_by_category_sorted_by_name():
    ledger = PointsLedger(FakePointsRepo(), CATALOG)

    negative = ledger.list_rules(RuleCategory.NEGATIVE)

    assert [r.id for r in negative] == ["lights-on", "late"]
    assert len(ledger.list_rules()) == 3


def test_violation_counters_track_negative_entries_only():
    repo = FakePointsRepo()
    ledger = PointsLedger(repo, CATALOG)

    ledger.assign_points("u1", [CartItem("late"), CartItem("punctual")], "admin", now=NOW)
    ledger.assign_points("u1", [CartItem("late")], "admin", now=NOW + timedelta(hours=1))
    ledger.assign_points("u2", [CartItem("lights-on")], "admin", now=NOW)

    [counter] = ledger.list_violation_counters("u1")
    assert (counter.rule_id, counter.count) == ("late", 2)
    assert counter.last_occurrence == NOW + timedelta(hours=1)
    assert counter.id == "u1:late"
    assert len(ledger.list_violation_counters()) == 2


@pytest.mark.parametrize("points", [2.7, True, "3", None])
def test_custom_points_must_be_an_integer(points):
    repo = FakePointsRepo()
    ledger = PointsLedger(repo, CATALOG)

    with pytest.raises(ValidationError, match="Points must be a whole number"):
        ledger.assign_custom_points("u1", points, "reason", "admin", now=NOW)
    assert repo.entries == []


@pytest.mark.parametrize("quantity", [1.5, True, "2"])
def test_cart_quantity_must_be_an_integer(quantity):
    repo = FakePointsRepo()
    ledger = PointsLedger(repo, CATALOG)

    with pytest.raises(ValidationError, match="Quantity must be a whole number"):
        ledger.assign_points("u1", [{"rule_id": "late", "quantity": quantity}], "admin", now=NOW)
    assert repo.entries == []


def test_cart_quantity_is_capped():
    repo = FakePointsRepo()
    ledger = PointsLedger(repo, CATALOG)

    entries = ledger.assign_points("u1", [CartItem("punctual", quantity=MAX_CART_QUANTITY)], "admin", now=NOW)
    assert len(entries) == MAX_CART_QUANTITY

    with pytest.raises(ValidationError, match="at most"):
        ledger.assign_points("u1", [CartItem("punctual", quantity=MAX_CART_QUANTITY + 1)], "admin", now=NOW)
    with pytest.raises(ValidationError, match="at most"):
        ledger.preview_cart_total("u1", [CartItem("late", quantity=10**9)], now=NOW)
    assert len(repo.entries) == MAX_CART_QUANTITY


def test_cart_items_must_be_objects():
    repo = FakePointsRepo()
    ledger = PointsLedger(repo, CATALOG)

    with pytest.raises(ValidationError, match="Cart items must be objects"):
        ledger.assign_points("u1", ["late"], "admin", now=NOW)
    with pytest.raises(ValidationError, match="Cart items must be objects"):
        ledger.assign_points("u1", [CartItem("late"), 7], "admin", now=NOW)
    assert repo.entries == []
