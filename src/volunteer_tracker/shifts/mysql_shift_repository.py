from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import ShiftStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import Shift
from .repository import ShiftRepository

_SELECT = """
    SELECT s.shift_id, s.title, s.description, s.location, s.start_time, s.end_time,
           s.capacity, s.status, s.group_id,
           (SELECT COUNT(*) FROM shift_volunteers sv WHERE sv.shift_id = s.shift_id) AS volunteer_count
    FROM shifts s
"""


def _to_shift(r: Dict[str, Any]) -> Shift:
    return Shift(
        shift_id=int(r["shift_id"]),
        title=r["title"],
        description=r.get("description"),
        location=r["location"],
        start_time=r["start_time"],
        end_time=r["end_time"],
        capacity=int(r.get("capacity") or 1),
        status=ShiftStatus(r["status"]),
        group_id=r.get("group_id"),
        volunteer_count=int(r.get("volunteer_count") or 0),
    )


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE s.shift_id=%s", (int(shift_id),))
            r = fetchone(cur)
            return _to_shift(r) if r else None

    def list_upcoming(self, *, now: datetime, limit: int = 100) -> Sequence[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                WHERE s.end_time >= %s AND s.status <> %s
                ORDER BY s.start_time ASC
                LIMIT %s
                """,
                (now, ShiftStatus.CANCELLED.value, int(limit)),
            )
            return [_to_shift(r) for r in fetchall(cur)]

    def list_for_volunteer(self, user_id: int) -> Sequence[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                JOIN shift_volunteers mine ON mine.shift_id = s.shift_id AND mine.user_id = %s
                ORDER BY s.start_time DESC
                """,
                (int(user_id),),
            )
            return [_to_shift(r) for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shifts(title, description, location, start_time, end_time, capacity, status, group_id)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (title, description, location, start_time, end_time, int(capacity), ShiftStatus.OPEN.value, group_id),
            )
            return int(cur.lastrowid)

    def set_status(self, shift_id: int, *, status: ShiftStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE shifts SET status=%s WHERE shift_id=%s", (status.value, int(shift_id)))
            return cur.rowcount > 0

    def is_assigned(self, *, shift_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS assigned FROM shift_volunteers WHERE shift_id=%s AND user_id=%s",
                (int(shift_id), int(user_id)),
            )
            return fetchone(cur) is not None

    def add_volunteer(self, *, shift_id: int, user_id: int) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO shift_volunteers(shift_id, user_id) VALUES(%s,%s)",
                    (int(shift_id), int(user_id)),
                )
                return True
        except Exception as exc:
            if is_duplicate_key(exc):
                return False
            raise

    def remove_volunteer(self, *, shift_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM shift_volunteers WHERE shift_id=%s AND user_id=%s",
                (int(shift_id), int(user_id)),
            )
            return cur.rowcount > 0

    def count_upcoming_for_volunteer(self, *, user_id: int, now: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS n
                FROM shifts s
                JOIN shift_volunteers sv ON sv.shift_id = s.shift_id
                WHERE sv.user_id=%s AND s.start_time > %s AND s.status <> %s
                """,
                (int(user_id), now, ShiftStatus.CANCELLED.value),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def count_all(self, *, starting_from: Optional[datetime] = None) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            if starting_from is None:
                cur.execute("SELECT COUNT(*) AS n FROM shifts")
            else:
                cur.execute("SELECT COUNT(*) AS n FROM shifts WHERE start_time >= %s", (starting_from,))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def roster_counts_since(self, since: datetime) -> Dict[int, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT sv.user_id, COUNT(*) AS n
                FROM shift_volunteers sv
                JOIN shifts s ON s.shift_id = sv.shift_id
                WHERE s.start_time >= %s
                GROUP BY sv.user_id
                """,
                (since,),
            )
            return {int(r["user_id"]): int(r["n"]) for r in fetchall(cur)}
