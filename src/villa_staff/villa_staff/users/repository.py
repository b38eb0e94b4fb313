from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for the roster.

    Note (DIP): services depend on this interface, not on a concrete store.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def list_users(self, role: Optional[Role] = None) -> Sequence[User]:
        raise NotImplementedError

    def save(self, user: User) -> None:
        raise NotImplementedError
