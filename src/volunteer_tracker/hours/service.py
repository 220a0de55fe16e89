from __future__ import annotations

import csv
import io
import logging
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local, parse_iso_date
from ..common.permissions import Actor, require
from ..common.validators import clean_optional, optional_int, require_int
from ..core.constants import (
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_PENDING_LIMIT,
    DEFAULT_TOP_VOLUNTEERS,
    MANUAL_LOG_DESCRIPTION,
)
from ..core.enums import Action, Role
from ..core.exceptions import NotAuthorized, NotFound, ValidationError
from ..groups.repository import GroupRepository
from ..notifications.notifier import Notifier, safe_notify
from ..shifts.repository import ShiftRepository
from ..users.repository import UserRepository
from .model import (
    AdminStats,
    GroupReportRow,
    HourLedgerEntry,
    HoursSummary,
    HoursTotal,
    NewHourEntry,
    TopVolunteer,
    VolunteerStats,
    normalize,
)
from .repository import HourLedgerRepository

logger = logging.getLogger(__name__)

CSV_HEADER = ["VolunteerName", "Email", "Date", "Hours", "Minutes", "Description"]


def _as_date(value, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError(f"{field_name} is required")
    try:
        return parse_iso_date(str(value)[:10])
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")


def _check_range(start: Optional[date], end: Optional[date]) -> None:
    if start and end and end < start:
        raise ValidationError("End date must not be before start date")


def summarize(entries: Iterable[HourLedgerEntry]) -> HoursSummary:
    """Sum approved and pending time separately, normalised to hours/minutes."""

    approved_minutes = pending_minutes = 0
    approved_count = pending_count = 0
    for e in entries:
        if e.approved:
            approved_minutes += e.total_minutes
            approved_count += 1
        else:
            pending_minutes += e.total_minutes
            pending_count += 1

    return HoursSummary(
        approved=HoursTotal.from_minutes(approved_minutes),
        pending=HoursTotal.from_minutes(pending_minutes),
        approved_entries=approved_count,
        pending_entries=pending_count,
    )


class HourLedgerService:
    """Use cases: manual hour logging and the admin approval queue."""

    def __init__(
        self,
        hours: HourLedgerRepository,
        groups: GroupRepository,
        *,
        notifier: Notifier | None = None,
    ):
        self._hours = hours
        self._groups = groups
        self._notifier = notifier

    def get(self, entry_id: int) -> HourLedgerEntry:
        entry = self._hours.get_by_id(int(entry_id))
        if not entry:
            raise NotFound("Hour entry not found")
        return entry

    def log_hours(
        self,
        *,
        actor: Actor,
        hours,
        minutes=None,
        description: Optional[str] = None,
        date,
        group_id=None,
    ) -> HourLedgerEntry:
        require(actor, Action.LOG_HOURS, message="Your account is not approved to log hours")

        hours = require_int(hours, "Hours", minimum=0)
        minutes = optional_int(minutes, "Minutes", minimum=0) or 0
        activity_date = _as_date(date, "Date")
        group_id = optional_int(group_id, "Group ID", minimum=1)

        if hours == 0 and minutes == 0:
            raise ValidationError("Logged time must be greater than zero")

        if group_id is not None:
            if not self._groups.get_by_id(group_id):
                raise NotFound("Group not found")
            if not self._groups.get_membership(user_id=actor.user_id, group_id=group_id):
                raise NotAuthorized("You are not a member of this group")

        hours, minutes = normalize(hours, minutes)
        entry_id = self._hours.add_entry(
            NewHourEntry(
                volunteer_id=actor.user_id,
                hours=hours,
                minutes=minutes,
                description=clean_optional(description) or MANUAL_LOG_DESCRIPTION,
                date=activity_date,
                group_id=group_id,
            )
        )
        logger.info("user %s logged %sh%02dm (entry %s)", actor.user_id, hours, minutes, entry_id)
        return self.get(entry_id)

    def my_entries(self, *, actor: Actor, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[HourLedgerEntry]:
        return self._hours.list_for_volunteer(actor.user_id, limit=limit)

    def pending(self, *, actor: Actor, limit: int = DEFAULT_PENDING_LIMIT) -> Sequence[HourLedgerEntry]:
        require(actor, Action.APPROVE_HOURS)
        return self._hours.list_pending(limit=limit)

    def approve(self, *, actor: Actor, entry_id: int, now: datetime | None = None) -> HourLedgerEntry:
        require(actor, Action.APPROVE_HOURS)
        entry = self.get(entry_id)
        if entry.approved:
            raise ValidationError("Hour entry is already approved")

        if not self._hours.approve(entry.entry_id, approved_by=actor.user_id, approved_at=now or now_local()):
            raise ValidationError("Hour entry is already approved")

        logger.info("admin %s approved hour entry %s", actor.user_id, entry.entry_id)
        safe_notify(
            self._notifier,
            user_id=entry.volunteer_id,
            event="hours_approved",
            entry_id=entry.entry_id,
            hours=entry.hours,
            minutes=entry.minutes,
        )
        return self.get(entry.entry_id)

    def reject(self, *, actor: Actor, entry_id: int) -> None:
        require(actor, Action.APPROVE_HOURS)
        entry = self.get(entry_id)
        if entry.approved:
            raise ValidationError("Approved hour entries cannot be rejected")

        if not self._hours.delete_pending(entry.entry_id):
            raise ValidationError("Approved hour entries cannot be rejected")

        logger.info("admin %s rejected hour entry %s", actor.user_id, entry.entry_id)
        safe_notify(
            self._notifier,
            user_id=entry.volunteer_id,
            event="hours_rejected",
            entry_id=entry.entry_id,
            description=entry.description,
        )


class HoursReportService:
    """Read side: totals, volunteer stats and the group hours report."""

    def __init__(
        self,
        hours: HourLedgerRepository,
        attendance: AttendanceRepository,
        shifts: ShiftRepository,
        groups: GroupRepository,
        users: UserRepository,
    ):
        self._hours = hours
        self._attendance = attendance
        self._shifts = shifts
        self._groups = groups
        self._users = users

    def aggregate_hours(
        self,
        *,
        volunteer_id: Optional[int] = None,
        group_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> HoursSummary:
        _check_range(start, end)
        entries = self._hours.list_matching(volunteer_id=volunteer_id, group_id=group_id, start=start, end=end)
        return summarize(entries)

    def my_summary(
        self,
        *,
        actor: Actor,
        group_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> HoursSummary:
        return self.aggregate_hours(volunteer_id=actor.user_id, group_id=group_id, start=start, end=end)

    def admin_summary(
        self,
        *,
        actor: Actor,
        volunteer_id: Optional[int] = None,
        group_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> HoursSummary:
        require(actor, Action.VIEW_REPORTS)
        return self.aggregate_hours(volunteer_id=volunteer_id, group_id=group_id, start=start, end=end)

    def volunteer_stats(self, *, actor: Actor, now: datetime | None = None) -> VolunteerStats:
        now = now or now_local()
        return VolunteerStats(
            summary=self.aggregate_hours(volunteer_id=actor.user_id),
            completed_check_ins=self._attendance.count_completed_for_volunteer(actor.user_id),
            upcoming_shifts=self._shifts.count_upcoming_for_volunteer(user_id=actor.user_id, now=now),
        )

    def admin_stats(self, *, actor: Actor, now: datetime | None = None) -> AdminStats:
        require(actor, Action.VIEW_REPORTS)
        now = now or now_local()
        summary = self.aggregate_hours()
        return AdminStats(
            total_volunteers=len(self._users.list_by_role(Role.VOLUNTEER)),
            pending_volunteers=len(self._users.list_by_role(Role.PENDING)),
            total_shifts=self._shifts.count_all(),
            upcoming_shifts=self._shifts.count_all(starting_from=now),
            approved=summary.approved,
            pending_approvals=summary.pending_entries,
        )

    def top_volunteers(
        self,
        *,
        actor: Actor,
        limit=DEFAULT_TOP_VOLUNTEERS,
        now: datetime | None = None,
    ) -> Sequence[TopVolunteer]:
        """Rank volunteers by approved time; ties go to more shifts this month."""

        require(actor, Action.VIEW_REPORTS)
        limit = require_int(limit, "Limit", minimum=1)
        now = now or now_local()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        minutes: dict[int, int] = {}
        for e in self._hours.list_matching():
            if e.approved:
                minutes[e.volunteer_id] = minutes.get(e.volunteer_id, 0) + e.total_minutes
        recent = self._shifts.roster_counts_since(month_start)

        ranked = []
        for volunteer_id in set(minutes) | set(recent):
            user = self._users.get_by_id(volunteer_id)
            if not user:
                continue
            ranked.append(
                TopVolunteer(
                    volunteer_id=user.user_id,
                    name=user.name,
                    email=user.email,
                    total=HoursTotal.from_minutes(minutes.get(volunteer_id, 0)),
                    recent_shifts=recent.get(volunteer_id, 0),
                )
            )
        ranked.sort(key=lambda v: (-v.total.total_minutes, -v.recent_shifts, v.name))
        return ranked[:limit]

    def group_hours_report(self, *, actor: Actor, group_id: int, start, end) -> Sequence[GroupReportRow]:
        group = self._groups.get_by_id(int(group_id))
        if not group:
            raise NotFound("Group not found")

        membership = self._groups.get_membership(user_id=actor.user_id, group_id=group.group_id)
        require(actor, Action.VIEW_GROUP_REPORT, membership, message="Only group admins can view this report")

        start = _as_date(start, "Start date")
        end = _as_date(end, "End date")
        _check_range(start, end)
        return self._hours.group_report_rows(group_id=group.group_id, start=start, end=end)

    @staticmethod
    def to_csv(rows: Sequence[GroupReportRow]) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(CSV_HEADER)
        for r in rows:
            writer.writerow([r.volunteer_name, r.email, r.date.isoformat(), r.hours, r.minutes, r.description])
        return buf.getvalue()
