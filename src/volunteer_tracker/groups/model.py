from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import GroupRole


@dataclass(frozen=True)
class Group:
    group_id: int
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    created_by: Optional[int] = None
    member_count: int = 0


@dataclass(frozen=True)
class GroupMembership:
    user_id: int
    group_id: int
    role: GroupRole = GroupRole.MEMBER
    joined_at: Optional[datetime] = None


@dataclass(frozen=True)
class GroupMember:
    """Read-model: membership joined with the user's contact details."""

    user_id: int
    name: str
    email: str
    role: GroupRole
    joined_at: Optional[datetime] = None
