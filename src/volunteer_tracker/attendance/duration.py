from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ..core.constants import MINUTES_PER_HOUR, SECONDS_PER_MINUTE


@dataclass(frozen=True)
class WorkedDuration:
    total_minutes: int

    @property
    def hours(self) -> int:
        return self.total_minutes // MINUTES_PER_HOUR

    @property
    def minutes(self) -> int:
        return self.total_minutes % MINUTES_PER_HOUR


class DurationCalculator(ABC):
    """Calculator interface (Strategy Pattern for attendance duration)."""

    @abstractmethod
    def worked_minutes(self, check_in_time: datetime, check_out_time: datetime) -> int:
        raise NotImplementedError

    def duration(self, check_in_time: datetime, check_out_time: datetime) -> WorkedDuration:
        return WorkedDuration(total_minutes=self.worked_minutes(check_in_time, check_out_time))


class WholeMinutesCalculator(DurationCalculator):
    """Standard rule: whole minutes between in and out, not below 0."""

    def worked_minutes(self, check_in_time: datetime, check_out_time: datetime) -> int:
        seconds = (check_out_time - check_in_time).total_seconds()
        return max(int(seconds // SECONDS_PER_MINUTE), 0)
