from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional, Protocol, Sequence

from ..core.enums import ShiftStatus
from .model import Shift


class ShiftRepository(Protocol):
    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        raise NotImplementedError

    def list_upcoming(self, *, now: datetime, limit: int = 100) -> Sequence[Shift]:
        raise NotImplementedError

    def list_for_volunteer(self, user_id: int) -> Sequence[Shift]:
        raise NotImplementedError

    def create(
        self,
        *,
        title: str,
        location: str,
        start_time: datetime,
        end_time: datetime,
        capacity: int,
        description: Optional[str] = None,
        group_id: Optional[int] = None,
    ) -> int:
        raise NotImplementedError

    def set_status(self, shift_id: int, *, status: ShiftStatus) -> bool:
        raise NotImplementedError

    # --- roster ---

    def is_assigned(self, *, shift_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def add_volunteer(self, *, shift_id: int, user_id: int) -> bool:
        """Returns False when the volunteer is already on the roster."""

        raise NotImplementedError

    def remove_volunteer(self, *, shift_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def count_upcoming_for_volunteer(self, *, user_id: int, now: datetime) -> int:
        raise NotImplementedError

    # --- reporting ---

    def count_all(self, *, starting_from: Optional[datetime] = None) -> int:
        """All shifts, or only those starting at/after ``starting_from``."""

        raise NotImplementedError

    def roster_counts_since(self, since: datetime) -> Dict[int, int]:
        """user_id -> number of roster places on shifts starting at/after ``since``."""

        raise NotImplementedError
