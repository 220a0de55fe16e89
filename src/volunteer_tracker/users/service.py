from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.permissions import Actor, require
from ..common.validators import clean_optional, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Action, Role
from ..core.exceptions import AuthenticationError, NotFound, ValidationError
from ..notifications.notifier import Notifier, safe_notify
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)

ASSIGNABLE_ROLES = (Role.VOLUNTEER, Role.ADMIN)


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    name: str
    email: str
    role: Role


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except Exception:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        logger.info("user %s logged in", user.user_id)
        return SessionUser(user_id=user.user_id, name=user.name, email=user.email, role=user.role)

    def load_actor(self, user_id: int) -> Optional[Actor]:
        """Re-read the caller so deactivation takes effect on the next request."""

        user = self._users.get_by_id(int(user_id))
        if not user:
            return None
        return Actor(user_id=user.user_id, role=user.role, is_active=user.is_active)


class UserService:
    """Use case: registration and admin approval of volunteers."""

    def __init__(self, users: UserRepository, *, notifier: Notifier | None = None):
        self._users = users
        self._notifier = notifier

    def register(self, *, name: str, email: str, password: str, phone: Optional[str] = None) -> int:
        name = require_non_empty(name, "Name")
        email = require_non_empty(email, "Email").lower()
        if "@" not in email:
            raise ValidationError("Email is not valid")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._users.get_by_email(email):
            raise ValidationError("An account with this email already exists")

        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=Role.PENDING,
            phone=clean_optional(phone),
        )
        logger.info("registered user %s (pending approval)", user_id)
        return user_id

    def get(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFound("User not found")
        return user

    def list_pending(self, *, actor: Actor) -> Sequence[User]:
        require(actor, Action.MANAGE_USERS)
        return self._users.list_by_role(Role.PENDING)

    def list_users(self, *, actor: Actor) -> Sequence[User]:
        require(actor, Action.MANAGE_USERS)
        return self._users.list_all()

    def _get_pending(self, user_id: int) -> User:
        user = self.get(user_id)
        if not user.is_pending or not user.is_active:
            raise ValidationError("User is not in pending state")
        return user

    def approve_volunteer(self, *, actor: Actor, user_id: int) -> None:
        require(actor, Action.MANAGE_USERS)
        user = self._get_pending(user_id)

        if not self._users.set_role(user.user_id, role=Role.VOLUNTEER):
            raise ValidationError("Approving the volunteer failed")
        logger.info("admin %s approved volunteer %s", actor.user_id, user.user_id)
        safe_notify(self._notifier, user_id=user.user_id, event="volunteer_approved", name=user.name)

    def reject_volunteer(self, *, actor: Actor, user_id: int) -> None:
        require(actor, Action.MANAGE_USERS)
        user = self._get_pending(user_id)

        if not self._users.set_active(user.user_id, is_active=False):
            raise ValidationError("Rejecting the volunteer failed")
        logger.info("admin %s rejected volunteer %s", actor.user_id, user.user_id)
        safe_notify(self._notifier, user_id=user.user_id, event="volunteer_rejected", name=user.name)

    def set_active(self, *, actor: Actor, user_id: int, is_active: bool) -> None:
        require(actor, Action.MANAGE_USERS)
        user = self.get(user_id)
        if user.user_id == actor.user_id and not is_active:
            raise ValidationError("You cannot deactivate your own account")
        self._users.set_active(user.user_id, is_active=is_active)
        logger.info("admin %s set user %s active=%s", actor.user_id, user.user_id, is_active)

    def set_role(self, *, actor: Actor, user_id: int, role) -> User:
        """Promote a volunteer to admin or demote an admin back to volunteer."""

        require(actor, Action.MANAGE_USERS)
        try:
            new_role = Role(str(role or "").strip().upper())
        except ValueError:
            raise ValidationError("Role must be VOLUNTEER or ADMIN")
        if new_role not in ASSIGNABLE_ROLES:
            raise ValidationError("Role must be VOLUNTEER or ADMIN")

        user = self.get(user_id)
        if user.user_id == actor.user_id:
            raise ValidationError("You cannot change your own role")
        if user.is_pending:
            raise ValidationError("Approve the volunteer before changing their role")

        if user.role != new_role:
            self._users.set_role(user.user_id, role=new_role)
            logger.info("admin %s changed role of user %s to %s", actor.user_id, user.user_id, new_role.value)
            safe_notify(self._notifier, user_id=user.user_id, event="role_changed", role=new_role.value)
        return self.get(user.user_id)
