from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..hours.model import NewHourEntry
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, check_in_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_open_for_pair(self, *, volunteer_id: int, shift_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_open_for_volunteer(self, volunteer_id: int) -> Sequence[AttendanceRecord]:
        """Open records, newest check-in first."""

        raise NotImplementedError

    def get_recent_for_volunteer(self, volunteer_id: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def count_open_for_shift(self, shift_id: int) -> int:
        raise NotImplementedError

    def count_completed_for_volunteer(self, volunteer_id: int) -> int:
        raise NotImplementedError

    def create_check_in(
        self,
        *,
        volunteer_id: int,
        shift_id: int,
        check_in_time: datetime,
        notes: Optional[str] = None,
    ) -> Optional[int]:
        """Insert an open record.

        Returns None when an open record already exists for the pair.
        """

        raise NotImplementedError

    def close_with_ledger_entry(
        self,
        *,
        check_in_id: int,
        check_out_time: datetime,
        duration_minutes: int,
        notes: Optional[str],
        clock_skew: bool,
        entry: NewHourEntry,
    ) -> Optional[int]:
        """Close the record and write its ledger entry in one transaction.

        The close only applies to a record that is still open. Returns the new
        entry id, or None (nothing written) when the record was already closed.
        """

        raise NotImplementedError
