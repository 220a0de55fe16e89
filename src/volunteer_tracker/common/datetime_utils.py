from __future__ import annotations

from datetime import date, datetime
from typing import Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into naive local time.

    Offsets ('Z', '+02:00') are converted to the server's local time, since
    DATETIME columns store wall-clock values only.
    """
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def to_db_precision(value: datetime) -> datetime:
    """Drop sub-second digits; DATETIME columns keep whole seconds."""
    return value.replace(microsecond=0)


def now_local() -> datetime:
    """Current local time, whole seconds.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return to_db_precision(datetime.now())


def fmt_dt(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat(timespec="seconds") if value else None
