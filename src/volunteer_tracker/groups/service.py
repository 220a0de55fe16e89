from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.permissions import Actor, require
from ..common.validators import clean_optional, require_non_empty
from ..core.enums import Action, GroupRole
from ..core.exceptions import Conflict, NotFound, ValidationError
from .model import Group, GroupMember, GroupMembership
from .repository import GroupRepository

logger = logging.getLogger(__name__)


class GroupService:
    """Use cases: volunteer groups and their membership."""

    def __init__(self, groups: GroupRepository):
        self._groups = groups

    def get(self, group_id: int) -> Group:
        group = self._groups.get_by_id(int(group_id))
        if not group:
            raise NotFound("Group not found")
        return group

    def list_all(self) -> Sequence[Group]:
        return self._groups.list_all()

    def list_mine(self, *, actor: Actor) -> Sequence[Group]:
        return self._groups.list_for_user(actor.user_id)

    def membership(self, *, user_id: int, group_id: int) -> Optional[GroupMembership]:
        return self._groups.get_membership(user_id=int(user_id), group_id=int(group_id))

    def is_member(self, *, user_id: int, group_id: int) -> bool:
        return self.membership(user_id=user_id, group_id=group_id) is not None

    def create_group(
        self,
        *,
        actor: Actor,
        name: str,
        description: Optional[str] = None,
        category: Optional[str] = None,
    ) -> int:
        require(actor, Action.SIGN_UP, message="Your account is not approved yet")
        name = require_non_empty(name, "Group name")
        if self._groups.get_by_name(name):
            raise Conflict("A group with this name already exists")

        group_id = self._groups.create(
            name=name,
            description=clean_optional(description),
            category=clean_optional(category),
            created_by=actor.user_id,
        )
        logger.info("user %s created group %s", actor.user_id, group_id)
        return group_id

    def join(self, *, actor: Actor, group_id: int) -> None:
        require(actor, Action.SIGN_UP, message="Your account is not approved yet")
        group = self.get(group_id)
        if not self._groups.add_member(user_id=actor.user_id, group_id=group.group_id):
            raise Conflict("Already a member of this group")
        logger.info("user %s joined group %s", actor.user_id, group.group_id)

    def leave(self, *, actor: Actor, group_id: int) -> None:
        group = self.get(group_id)
        membership = self.membership(user_id=actor.user_id, group_id=group.group_id)
        if not membership:
            raise NotFound("You are not a member of this group")
        if membership.role == GroupRole.ADMIN and self._groups.count_admins(group.group_id) <= 1:
            raise ValidationError("The last group admin cannot leave the group")

        self._groups.remove_member(user_id=actor.user_id, group_id=group.group_id)
        logger.info("user %s left group %s", actor.user_id, group.group_id)

    def list_members(self, *, group_id: int) -> Sequence[GroupMember]:
        group = self.get(group_id)
        return self._groups.list_members(group.group_id)

    def remove_member(self, *, actor: Actor, group_id: int, user_id: int) -> None:
        group = self.get(group_id)
        require(actor, Action.MANAGE_GROUP, self.membership(user_id=actor.user_id, group_id=group.group_id))

        target = self.membership(user_id=user_id, group_id=group.group_id)
        if not target:
            raise NotFound("Member not found")
        if target.role == GroupRole.ADMIN and self._groups.count_admins(group.group_id) <= 1:
            raise ValidationError("The last group admin cannot be removed")

        self._groups.remove_member(user_id=int(user_id), group_id=group.group_id)
        logger.info("user %s removed member %s from group %s", actor.user_id, user_id, group.group_id)
