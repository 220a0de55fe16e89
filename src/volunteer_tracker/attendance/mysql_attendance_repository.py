from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from ..hours.model import NewHourEntry
from ..hours.mysql_hours_repository import INSERT_ENTRY_SQL, entry_params
from .model import AttendanceRecord
from .repository import AttendanceRepository

_SELECT = """
    SELECT check_in_id, user_id, shift_id, check_in_time, check_out_time,
           duration_minutes, notes, clock_skew
    FROM check_ins
"""


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    duration = r.get("duration_minutes")
    return AttendanceRecord(
        check_in_id=int(r["check_in_id"]),
        volunteer_id=int(r["user_id"]),
        shift_id=int(r["shift_id"]),
        check_in_time=r["check_in_time"],
        check_out_time=r.get("check_out_time"),
        duration_minutes=int(duration) if duration is not None else None,
        notes=r.get("notes"),
        clock_skew=bool(r.get("clock_skew")),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, check_in_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE check_in_id=%s", (int(check_in_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_open_for_pair(self, *, volunteer_id: int, shift_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE user_id=%s AND shift_id=%s AND check_out_time IS NULL",
                (int(volunteer_id), int(shift_id)),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_open_for_volunteer(self, volunteer_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE user_id=%s AND check_out_time IS NULL ORDER BY check_in_time DESC",
                (int(volunteer_id),),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def get_recent_for_volunteer(self, volunteer_id: int, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE user_id=%s ORDER BY check_in_time DESC LIMIT %s",
                (int(volunteer_id), int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def count_open_for_shift(self, shift_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM check_ins WHERE shift_id=%s AND check_out_time IS NULL",
                (int(shift_id),),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def count_completed_for_volunteer(self, volunteer_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM check_ins WHERE user_id=%s AND check_out_time IS NOT NULL",
                (int(volunteer_id),),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def create_check_in(
        self,
        *,
        volunteer_id: int,
        shift_id: int,
        check_in_time: datetime,
        notes: Optional[str] = None,
    ) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO check_ins(user_id, shift_id, check_in_time, notes)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (int(volunteer_id), int(shift_id), check_in_time, notes),
                )
                return int(cur.lastrowid)
        except Exception as exc:
            # uq_ci_open: another request opened the same pair first
            if is_duplicate_key(exc):
                return None
            raise

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE check_ins
                SET check_out_time=%s, duration_minutes=%s, notes=%s, clock_skew=%s
                WHERE check_in_id=%s AND check_out_time IS NULL
                """,
                (check_out_time, int(duration_minutes), notes, int(bool(clock_skew)), int(check_in_id)),
            )
            if cur.rowcount == 0:
                return None

            cur.execute(INSERT_ENTRY_SQL, entry_params(entry))
            return int(cur.lastrowid)
