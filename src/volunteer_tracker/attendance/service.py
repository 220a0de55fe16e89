from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence, Tuple

from ..common.datetime_utils import now_local, to_db_precision
from ..common.permissions import Actor, require
from ..common.validators import clean_optional, require_int
from ..core.constants import CHECKOUT_NOTES_PREFIX, DEFAULT_HISTORY_LIMIT
from ..core.enums import Action, ShiftStatus
from ..core.exceptions import AlreadyCheckedIn, AlreadyCheckedOut, NotAuthorized, NotFound
from ..hours.model import NewHourEntry
from ..hours.repository import HourLedgerRepository
from ..notifications.notifier import Notifier, safe_notify
from ..shifts.model import Shift
from ..shifts.repository import ShiftRepository
from .duration import DurationCalculator, WholeMinutesCalculator
from .model import AttendanceRecord, CheckOutResult
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def merge_notes(existing: Optional[str], checkout_notes: Optional[str]) -> Optional[str]:
    """Append check-out notes below the check-in notes; never overwrite."""

    checkout_notes = clean_optional(checkout_notes)
    if not checkout_notes:
        return existing
    addition = f"{CHECKOUT_NOTES_PREFIX}{checkout_notes}"
    if not existing:
        return addition
    return f"{existing}\n\n{addition}"


def shift_description(shift: Optional[Shift]) -> str:
    if not shift:
        return "Shift check-out"
    return f"Shift: {shift.title} at {shift.location}"


class TimeTrackingService:
    """Use cases: check-in, check-out and the ledger entry a check-out derives."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        shifts: ShiftRepository,
        hours: HourLedgerRepository,
        *,
        notifier: Notifier | None = None,
        calculator: DurationCalculator | None = None,
    ):
        self._attendance = attendance
        self._shifts = shifts
        self._hours = hours
        self._notifier = notifier
        self._calculator = calculator or WholeMinutesCalculator()

    def check_in(
        self,
        *,
        actor: Actor,
        shift_id,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        shift_id = require_int(shift_id, "Shift ID", minimum=1)
        now = to_db_precision(now or now_local())

        if actor is None or not actor.is_active:
            raise NotAuthorized("You must be signed in to check in")

        shift = self._shifts.get_by_id(shift_id)
        if not shift:
            raise NotFound("Shift not found")

        if not self._shifts.is_assigned(shift_id=shift.shift_id, user_id=actor.user_id):
            raise NotAuthorized("You are not signed up for this shift")

        existing = self._attendance.get_open_for_pair(volunteer_id=actor.user_id, shift_id=shift.shift_id)
        if existing:
            raise AlreadyCheckedIn("You are already checked in for this shift", check_in_id=existing.check_in_id)

        check_in_id = self._attendance.create_check_in(
            volunteer_id=actor.user_id,
            shift_id=shift.shift_id,
            check_in_time=now,
            notes=clean_optional(notes),
        )
        if check_in_id is None:
            # Lost the race to a concurrent check-in for the same pair.
            existing = self._attendance.get_open_for_pair(volunteer_id=actor.user_id, shift_id=shift.shift_id)
            raise AlreadyCheckedIn(
                "You are already checked in for this shift",
                check_in_id=existing.check_in_id if existing else None,
            )

        logger.info("user %s checked in to shift %s (check-in %s)", actor.user_id, shift.shift_id, check_in_id)
        record = self._attendance.get_by_id(check_in_id)
        if not record:
            raise NotFound("Check-in record not found")
        return record

    def _resolve_check_out_time(self, record: AttendanceRecord, now: datetime) -> Tuple[datetime, bool]:
        if now < record.check_in_time:
            logger.warning(
                "clock skew on check-in %s: check-out %s precedes check-in %s; duration set to 0",
                record.check_in_id,
                now.isoformat(),
                record.check_in_time.isoformat(),
            )
            return record.check_in_time, True
        return now, False

    def check_out(
        self,
        *,
        actor: Actor,
        check_in_id,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> CheckOutResult:
        check_in_id = require_int(check_in_id, "Check-in ID", minimum=1)
        now = to_db_precision(now or now_local())

        record = self._attendance.get_by_id(check_in_id)
        if not record:
            raise NotFound("Check-in record not found")
        require(actor, Action.CHECK_OUT, record, message="You can only check out of your own check-in")
        if not record.is_open:
            raise AlreadyCheckedOut("Already checked out")

        check_out_time, clock_skew = self._resolve_check_out_time(record, now)
        duration = self._calculator.duration(record.check_in_time, check_out_time)
        shift = self._shifts.get_by_id(record.shift_id)

        entry = NewHourEntry(
            volunteer_id=record.volunteer_id,
            hours=duration.hours,
            minutes=duration.minutes,
            description=shift_description(shift),
            date=record.check_in_time.date(),
            group_id=shift.group_id if shift else None,
            check_in_id=record.check_in_id,
        )
        entry_id = self._attendance.close_with_ledger_entry(
            check_in_id=record.check_in_id,
            check_out_time=check_out_time,
            duration_minutes=duration.total_minutes,
            notes=merge_notes(record.notes, notes),
            clock_skew=clock_skew,
            entry=entry,
        )
        if entry_id is None:
            raise AlreadyCheckedOut("Already checked out")

        logger.info(
            "check-in %s closed by user %s: %s minutes (ledger entry %s)",
            record.check_in_id,
            actor.user_id,
            duration.total_minutes,
            entry_id,
        )

        closed = self._attendance.get_by_id(record.check_in_id)
        ledger_entry = self._hours.get_by_id(entry_id)
        if not closed or not ledger_entry:
            raise NotFound("Check-out result could not be read back")

        if shift:
            self._complete_shift_if_done(shift, now)

        safe_notify(
            self._notifier,
            user_id=record.volunteer_id,
            event="checked_out",
            check_in_id=record.check_in_id,
            shift_id=record.shift_id,
            hours=duration.hours,
            minutes=duration.minutes,
        )
        return CheckOutResult(record=closed, ledger_entry=ledger_entry, duration=duration)

    def _complete_shift_if_done(self, shift: Shift, now: datetime) -> None:
        if shift.status in (ShiftStatus.COMPLETED, ShiftStatus.CANCELLED):
            return
        if not shift.has_ended(now):
            return
        if self._attendance.count_open_for_shift(shift.shift_id) > 0:
            return
        self._shifts.set_status(shift.shift_id, status=ShiftStatus.COMPLETED)
        logger.info("shift %s completed", shift.shift_id)

    def active_check_ins(self, *, volunteer_id: int) -> Sequence[AttendanceRecord]:
        return self._attendance.list_open_for_volunteer(int(volunteer_id))

    def current_check_in(self, *, volunteer_id: int) -> Optional[AttendanceRecord]:
        active = self.active_check_ins(volunteer_id=volunteer_id)
        return active[0] if active else None

    def history(self, *, volunteer_id: int, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        return self._attendance.get_recent_for_volunteer(int(volunteer_id), int(limit))
