from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.permissions import Actor, require
from ..common.validators import clean_optional, require_int, require_non_empty
from ..core.enums import Action, ShiftStatus
from ..core.exceptions import Conflict, NotFound, ValidationError
from ..groups.repository import GroupRepository
from ..notifications.notifier import Notifier, safe_notify
from .model import Shift
from .repository import ShiftRepository

logger = logging.getLogger(__name__)


class ShiftService:
    """Use cases: shift scheduling and roster sign-up."""

    def __init__(self, shifts: ShiftRepository, groups: GroupRepository, *, notifier: Notifier | None = None):
        self._shifts = shifts
        self._groups = groups
        self._notifier = notifier

    def get(self, shift_id: int) -> Shift:
        shift = self._shifts.get_by_id(int(shift_id))
        if not shift:
            raise NotFound("Shift not found")
        return shift

    def list_upcoming(self, *, now: datetime | None = None) -> Sequence[Shift]:
        return self._shifts.list_upcoming(now=now or now_local())

    def list_mine(self, *, actor: Actor) -> Sequence[Shift]:
        return self._shifts.list_for_volunteer(actor.user_id)

    def create_shift(
        self,
        *,
        actor: Actor,
        title: str,
        location: str,
        start_time: datetime,
        end_time: datetime,
        capacity,
        description: Optional[str] = None,
        group_id: Optional[int] = None,
    ) -> int:
        require(actor, Action.MANAGE_SHIFTS)

        title = require_non_empty(title, "Title")
        location = require_non_empty(location, "Location")
        capacity = require_int(capacity, "Capacity", minimum=1)
        if start_time is None or end_time is None:
            raise ValidationError("Start and end time are required")
        if end_time <= start_time:
            raise ValidationError("End time must be after start time")
        if group_id is not None and not self._groups.get_by_id(group_id):
            raise NotFound("Group not found")

        shift_id = self._shifts.create(
            title=title,
            location=location,
            start_time=start_time,
            end_time=end_time,
            capacity=capacity,
            description=clean_optional(description),
            group_id=group_id,
        )
        logger.info("admin %s created shift %s", actor.user_id, shift_id)
        return shift_id

    def sign_up(self, *, actor: Actor, shift_id: int, now: datetime | None = None) -> Shift:
        require(actor, Action.SIGN_UP, message="Your account is not approved for shift sign-up")
        now = now or now_local()
        shift = self.get(shift_id)

        if shift.status != ShiftStatus.OPEN:
            raise ValidationError(f"Shift is {shift.status.value.lower()}")
        if shift.has_ended(now):
            raise ValidationError("Shift has already ended")
        if shift.is_full:
            raise ValidationError("Shift is full")
        if self._shifts.is_assigned(shift_id=shift.shift_id, user_id=actor.user_id):
            raise Conflict("Already signed up for this shift")

        if not self._shifts.add_volunteer(shift_id=shift.shift_id, user_id=actor.user_id):
            raise Conflict("Already signed up for this shift")

        if shift.volunteer_count + 1 >= shift.capacity:
            self._shifts.set_status(shift.shift_id, status=ShiftStatus.FULL)

        logger.info("user %s signed up for shift %s", actor.user_id, shift.shift_id)
        safe_notify(
            self._notifier,
            user_id=actor.user_id,
            event="shift_confirmation",
            shift_id=shift.shift_id,
            title=shift.title,
            start_time=shift.start_time.isoformat(),
        )
        return self.get(shift.shift_id)

    def cancel_sign_up(self, *, actor: Actor, shift_id: int) -> None:
        shift = self.get(shift_id)
        if not self._shifts.remove_volunteer(shift_id=shift.shift_id, user_id=actor.user_id):
            raise NotFound("You are not signed up for this shift")

        if shift.status == ShiftStatus.FULL:
            self._shifts.set_status(shift.shift_id, status=ShiftStatus.OPEN)

        logger.info("user %s cancelled sign-up for shift %s", actor.user_id, shift.shift_id)
        safe_notify(
            self._notifier,
            user_id=actor.user_id,
            event="shift_cancellation",
            shift_id=shift.shift_id,
            title=shift.title,
        )

    def cancel_shift(self, *, actor: Actor, shift_id: int) -> None:
        require(actor, Action.MANAGE_SHIFTS)
        shift = self.get(shift_id)
        if shift.status == ShiftStatus.COMPLETED:
            raise ValidationError("Completed shifts cannot be cancelled")
        self._shifts.set_status(shift.shift_id, status=ShiftStatus.CANCELLED)
        logger.info("admin %s cancelled shift %s", actor.user_id, shift.shift_id)
