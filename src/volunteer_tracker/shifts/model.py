from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ShiftStatus


@dataclass(frozen=True)
class Shift:
    """Domain entity: a scheduled block of volunteer work."""

    shift_id: int
    title: str
    location: str
    start_time: datetime
    end_time: datetime
    capacity: int = 1
    status: ShiftStatus = ShiftStatus.OPEN
    description: Optional[str] = None
    group_id: Optional[int] = None
    volunteer_count: int = 0

    @property
    def is_full(self) -> bool:
        return self.volunteer_count >= self.capacity

    def has_ended(self, now: datetime) -> bool:
        return now > self.end_time
