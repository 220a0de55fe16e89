from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: a registered user.

    Note: plain data object, no DB access code here.
    """

    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    phone: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.role == Role.PENDING
