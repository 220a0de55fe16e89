from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        phone: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def set_role(self, user_id: int, *, role: Role) -> bool:
        raise NotImplementedError

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def list_by_role(self, role: Role) -> Sequence[User]:
        raise NotImplementedError

    def list_all(self) -> Sequence[User]:
        raise NotImplementedError
