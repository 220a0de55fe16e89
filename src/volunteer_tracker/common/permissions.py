"""Single capability check used by every service.

Role checks used to be repeated per endpoint; they are evaluated here once
per operation as ``can(actor, action, resource)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..core.enums import Action, GroupRole, Role
from ..core.exceptions import NotAuthorized


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as stored in the Flask session."""

    user_id: int
    role: Role
    is_active: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN and self.is_active


_ADMIN_ONLY = {
    Action.APPROVE_HOURS,
    Action.MANAGE_USERS,
    Action.MANAGE_SHIFTS,
    Action.VIEW_REPORTS,
}

_PARTICIPANT = {
    Action.SIGN_UP,
    Action.LOG_HOURS,
}

_GROUP_ADMIN = {
    Action.MANAGE_GROUP,
    Action.VIEW_GROUP_REPORT,
}


def _owner_id(resource: Any) -> Optional[int]:
    for attr in ("volunteer_id", "user_id"):
        value = getattr(resource, attr, None)
        if value is not None:
            return int(value)
    return None


def can(actor: Optional[Actor], action: Action, resource: Any = None) -> bool:
    """Return True when ``actor`` may perform ``action`` on ``resource``.

    ``resource`` is the record being acted on: an attendance record for
    CHECK_OUT (owner check) or the actor's group membership for group
    actions. Admins are allowed everything.
    """

    if actor is None or not actor.is_active:
        return False
    if actor.is_admin:
        return True

    if action in _ADMIN_ONLY:
        return False
    if action in _PARTICIPANT:
        return actor.role == Role.VOLUNTEER
    if action == Action.CHECK_OUT:
        return resource is not None and _owner_id(resource) == actor.user_id
    if action in _GROUP_ADMIN:
        return (
            resource is not None
            and _owner_id(resource) == actor.user_id
            and getattr(resource, "role", None) == GroupRole.ADMIN
        )
    return False


def require(actor: Optional[Actor], action: Action, resource: Any = None, *, message: str = "You do not have permission") -> None:
    if not can(actor, action, resource):
        raise NotAuthorized(message)
