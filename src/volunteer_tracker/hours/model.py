from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from ..core.constants import MINUTES_PER_HOUR


def normalize(hours: int, minutes: int) -> Tuple[int, int]:
    """Fold whole hours out of ``minutes``: (1, 75) -> (2, 15)."""

    total = int(hours) * MINUTES_PER_HOUR + int(minutes)
    return divmod(total, MINUTES_PER_HOUR)


@dataclass(frozen=True)
class HourLedgerEntry:
    """Domain entity: one block of volunteer time awaiting or holding approval."""

    entry_id: int
    volunteer_id: int
    hours: int
    minutes: int
    description: str
    date: date
    approved: bool = False
    group_id: Optional[int] = None
    check_in_id: Optional[int] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def total_minutes(self) -> int:
        return self.hours * MINUTES_PER_HOUR + self.minutes


@dataclass(frozen=True)
class NewHourEntry:
    """Values for an entry that has not been written yet."""

    volunteer_id: int
    hours: int
    minutes: int
    description: str
    date: date
    group_id: Optional[int] = None
    check_in_id: Optional[int] = None


@dataclass(frozen=True)
class HoursTotal:
    hours: int = 0
    minutes: int = 0

    @classmethod
    def from_minutes(cls, total_minutes: int) -> "HoursTotal":
        hours, minutes = divmod(max(int(total_minutes), 0), MINUTES_PER_HOUR)
        return cls(hours=hours, minutes=minutes)

    @property
    def total_minutes(self) -> int:
        return self.hours * MINUTES_PER_HOUR + self.minutes

    @property
    def decimal_hours(self) -> float:
        return round(self.hours + self.minutes / MINUTES_PER_HOUR, 2)


@dataclass(frozen=True)
class HoursSummary:
    """Approved totals are official; pending totals are shown alongside."""

    approved: HoursTotal
    pending: HoursTotal
    approved_entries: int = 0
    pending_entries: int = 0


@dataclass(frozen=True)
class VolunteerStats:
    summary: HoursSummary
    completed_check_ins: int
    upcoming_shifts: int


@dataclass(frozen=True)
class GroupReportRow:
    """Read-model for the group hours report and its CSV export."""

    entry_id: int
    volunteer_id: int
    volunteer_name: str
    email: str
    date: date
    hours: int
    minutes: int
    description: str


@dataclass(frozen=True)
class AdminStats:
    """Dashboard counters for administrators."""

    total_volunteers: int
    pending_volunteers: int
    total_shifts: int
    upcoming_shifts: int
    approved: HoursTotal
    pending_approvals: int


@dataclass(frozen=True)
class TopVolunteer:
    volunteer_id: int
    name: str
    email: str
    total: HoursTotal
    recent_shifts: int = 0
