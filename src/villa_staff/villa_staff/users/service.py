from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.ids import new_id
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_LANGUAGE
from ..core.enums import Role
from ..core.exceptions import GuardError, ValidationError
from .model import User
from .repository import UserRepository


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after quick login."""

    user_id: str
    name: str
    role: Role
    language: str


class RosterService:
    """Identity/roster collaborator: quick login and user lookup."""

    def __init__(self, users: UserRepository):
        self._users = users

    def quick_login(self, user_id: str) -> SessionUser:
        """Credential-less login: pick a user from the roster."""
        user_id = require_non_empty(user_id, "User")
        user = self._users.get_by_id(user_id)
        if not user:
            raise ValidationError("Unknown user")
        return SessionUser(user_id=user.id, name=user.name, role=user.role, language=user.language)

    def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get_by_id(user_id)

    def list_users(self, role: Optional[Role] = None) -> Sequence[User]:
        return self._users.list_users(role)

    def add_user(self, *, current_role: Role, name: str, role: Role, language: str = DEFAULT_LANGUAGE) -> User:
        if current_role != Role.ADMIN:
            raise GuardError("Only admins can add users")
        user = User(
            id=new_id(),
            name=require_non_empty(name, "Name"),
            role=Role(role),
            language=(language or DEFAULT_LANGUAGE).strip(),
            created_at=now_local(),
        )
        self._users.save(user)
        return user
