from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import parse_iso, to_iso
from ..core.enums import RuleCategory


@dataclass(frozen=True)
class PointRule:
    """Catalog entry: reason and base value for granting/deducting points."""

    id: str
    name: str
    base_points: int
    category: RuleCategory
    description: str = ""
    repeatable: bool = True

    @property
    def is_negative(self) -> bool:
        return self.category == RuleCategory.NEGATIVE

    @classmethod
    def from_record(cls, r: dict) -> "PointRule":
        return cls(
            id=str(r["id"]),
            name=str(r.get("name") or r["id"]),
            base_points=int(r["base_points"]),
            category=RuleCategory(r["category"]),
            description=str(r.get("description") or ""),
            repeatable=bool(r.get("repeatable", True)),
        )


@dataclass(frozen=True)
class PointEntry:
    """Ledger record. `points` already includes the multiplier."""

    id: str
    user_id: str
    rule_id: str
    points: int
    reason: str
    assigned_by: str
    assigned_at: datetime
    multiplier: int = 1
    custom_reason: Optional[str] = None

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "rule_id": self.rule_id,
            "points": self.points,
            "reason": self.reason,
            "custom_reason": self.custom_reason,
            "assigned_by": self.assigned_by,
            "assigned_at": to_iso(self.assigned_at),
            "multiplier": self.multiplier,
        }

    @classmethod
    def from_record(cls, r: dict) -> "PointEntry":
        return cls(
            id=str(r["id"]),
            user_id=str(r["user_id"]),
            rule_id=str(r["rule_id"]),
            points=int(r["points"]),
            reason=str(r.get("reason") or ""),
            assigned_by=str(r.get("assigned_by") or ""),
            assigned_at=parse_iso(r["assigned_at"]),
            multiplier=int(r.get("multiplier") or 1),
            custom_reason=r.get("custom_reason"),
        )


@dataclass(frozen=True)
class UserViolationCounter:
    """Cached tally per (user, rule). Never used to decide a multiplier."""

    user_id: str
    rule_id: str
    count: int
    last_occurrence: datetime

    @property
    def id(self) -> str:
        return f"{self.user_id}:{self.rule_id}"

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "rule_id": self.rule_id,
            "count": self.count,
            "last_occurrence": to_iso(self.last_occurrence),
        }

    @classmethod
    def from_record(cls, r: dict) -> "UserViolationCounter":
        return cls(
            user_id=str(r["user_id"]),
            rule_id=str(r["rule_id"]),
            count=int(r.get("count") or 0),
            last_occurrence=parse_iso(r["last_occurrence"]),
        )


@dataclass(frozen=True)
class CartItem:
    rule_id: str
    quantity: int = 1
    custom_reason: Optional[str] = None


@dataclass(frozen=True)
class PointTotals:
    total: int
    positive: int
    negative: int

    def as_dict(self) -> dict:
        return {"total": self.total, "positive": self.positive, "negative": self.negative}
