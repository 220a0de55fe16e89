from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import GroupRole
from .model import Group, GroupMember, GroupMembership


class GroupRepository(Protocol):
    def get_by_id(self, group_id: int) -> Optional[Group]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[Group]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Group]:
        raise NotImplementedError

    def list_for_user(self, user_id: int) -> Sequence[Group]:
        raise NotImplementedError

    def create(
        self,
        *,
        name: str,
        description: Optional[str],
        category: Optional[str],
        created_by: int,
    ) -> int:
        """Create the group and make ``created_by`` its first ADMIN member."""

        raise NotImplementedError

    def get_membership(self, *, user_id: int, group_id: int) -> Optional[GroupMembership]:
        raise NotImplementedError

    def add_member(self, *, user_id: int, group_id: int, role: GroupRole = GroupRole.MEMBER) -> bool:
        """Returns False when the user is already a member."""

        raise NotImplementedError

    def remove_member(self, *, user_id: int, group_id: int) -> bool:
        raise NotImplementedError

    def list_members(self, group_id: int) -> Sequence[GroupMember]:
        raise NotImplementedError

    def count_admins(self, group_id: int) -> int:
        raise NotImplementedError
