from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import parse_iso, to_iso
from ..core.constants import DEFAULT_LANGUAGE
from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: staff roster entry.

    Note: plain data object, no store access. Only `id` and `role` matter to
    the points and task rules.
    """

    id: str
    name: str
    role: Role
    language: str = DEFAULT_LANGUAGE
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role.value,
            "language": self.language,
            "created_at": to_iso(self.created_at),
        }

    @classmethod
    def from_record(cls, r: dict) -> "User":
        return cls(
            id=str(r["id"]),
            name=str(r.get("name") or ""),
            role=Role(r.get("role") or Role.STAFF.value),
            language=str(r.get("language") or DEFAULT_LANGUAGE),
            created_at=parse_iso(r.get("created_at")),
        )
