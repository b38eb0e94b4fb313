from __future__ import annotations

from typing import Optional, Sequence

from ..core.constants import COLLECTION_USERS
from ..core.enums import Role
from ..storage.gateway import PersistenceGateway
from .model import User
from .repository import UserRepository


class StoreUserRepository(UserRepository):
    def __init__(self, gateway: PersistenceGateway):
        self._gateway = gateway

    def _all(self) -> list[User]:
        return [User.from_record(r) for r in self._gateway.load(COLLECTION_USERS)]

    def get_by_id(self, user_id: str) -> Optional[User]:
        for user in self._all():
            if user.id == str(user_id):
                return user
        return None

    def list_users(self, role: Optional[Role] = None) -> Sequence[User]:
        users = [u for u in self._all() if role is None or u.role == role]
        users.sort(key=lambda u: u.name.lower())
        return users

    def save(self, user: User) -> None:
        self._gateway.save(COLLECTION_USERS, [user.to_record()])
