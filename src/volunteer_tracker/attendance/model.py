from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceState
from ..hours.model import HourLedgerEntry
from .duration import WorkedDuration


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one check-in of a volunteer to a shift.

    Open while ``check_out_time`` is None; closed exactly once by check-out.
    """

    check_in_id: int
    volunteer_id: int
    shift_id: int
    check_in_time: datetime
    check_out_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    notes: Optional[str] = None
    clock_skew: bool = False

    @property
    def is_open(self) -> bool:
        return self.check_out_time is None

    @property
    def state(self) -> AttendanceState:
        return AttendanceState.CHECKED_IN if self.is_open else AttendanceState.CHECKED_OUT


@dataclass(frozen=True)
class CheckOutResult:
    record: AttendanceRecord
    ledger_entry: HourLedgerEntry
    duration: WorkedDuration
