from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import GroupReportRow, HourLedgerEntry, NewHourEntry


class HourLedgerRepository(Protocol):
    def add_entry(self, entry: NewHourEntry) -> int:
        raise NotImplementedError

    def get_by_id(self, entry_id: int) -> Optional[HourLedgerEntry]:
        raise NotImplementedError

    def list_for_volunteer(self, volunteer_id: int, *, limit: int) -> Sequence[HourLedgerEntry]:
        raise NotImplementedError

    def list_pending(self, *, limit: int) -> Sequence[HourLedgerEntry]:
        raise NotImplementedError

    def approve(self, entry_id: int, *, approved_by: int, approved_at: datetime) -> bool:
        """Mark a pending entry approved. Returns False if it was not pending."""

        raise NotImplementedError

    def delete_pending(self, entry_id: int) -> bool:
        raise NotImplementedError

    # --- reporting ---

    def list_matching(
        self,
        *,
        volunteer_id: Optional[int] = None,
        group_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[HourLedgerEntry]:
        raise NotImplementedError

    def group_report_rows(self, *, group_id: int, start: date, end: date) -> Sequence[GroupReportRow]:
        """Approved entries of the group in [start, end], with volunteer contact details."""

        raise NotImplementedError
