from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import GroupReportRow, HourLedgerEntry, NewHourEntry
from .repository import HourLedgerRepository

_COLUMNS = """
    entry_id, user_id, group_id, check_in_id, hours, minutes, description, date,
    approved, approved_by, approved_at, created_at
"""

INSERT_ENTRY_SQL = """
    INSERT INTO volunteer_logs(user_id, group_id, check_in_id, hours, minutes, description, date, approved)
    VALUES(%s,%s,%s,%s,%s,%s,%s,0)
"""


def entry_params(entry: NewHourEntry) -> tuple:
    return (
        int(entry.volunteer_id),
        entry.group_id,
        entry.check_in_id,
        int(entry.hours),
        int(entry.minutes),
        entry.description,
        entry.date,
    )


def to_entry(r: Dict[str, Any]) -> HourLedgerEntry:
    return HourLedgerEntry(
        entry_id=int(r["entry_id"]),
        volunteer_id=int(r["user_id"]),
        group_id=r.get("group_id"),
        check_in_id=r.get("check_in_id"),
        hours=int(r["hours"]),
        minutes=int(r["minutes"]),
        description=r["description"],
        date=r["date"],
        approved=bool(r["approved"]),
        approved_by=r.get("approved_by"),
        approved_at=r.get("approved_at"),
        created_at=r.get("created_at"),
    )


class MySQLHourLedgerRepository(HourLedgerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add_entry(self, entry: NewHourEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(INSERT_ENTRY_SQL, entry_params(entry))
            return int(cur.lastrowid)

    def get_by_id(self, entry_id: int) -> Optional[HourLedgerEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM volunteer_logs WHERE entry_id=%s", (int(entry_id),))
            r = fetchone(cur)
            return to_entry(r) if r else None

    def list_for_volunteer(self, volunteer_id: int, *, limit: int) -> Sequence[HourLedgerEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM volunteer_logs
                WHERE user_id=%s
                ORDER BY date DESC, entry_id DESC
                LIMIT %s
                """,
                (int(volunteer_id), int(limit)),
            )
            return [to_entry(r) for r in fetchall(cur)]

    def list_pending(self, *, limit: int) -> Sequence[HourLedgerEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM volunteer_logs
                WHERE approved=0
                ORDER BY created_at ASC, entry_id ASC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [to_entry(r) for r in fetchall(cur)]

    def approve(self, entry_id: int, *, approved_by: int, approved_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE volunteer_logs
                SET approved=1, approved_by=%s, approved_at=%s
                WHERE entry_id=%s AND approved=0
                """,
                (int(approved_by), approved_at, int(entry_id)),
            )
            return cur.rowcount > 0

    def delete_pending(self, entry_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM volunteer_logs WHERE entry_id=%s AND approved=0", (int(entry_id),))
            return cur.rowcount > 0

    def list_matching(
        self,
        *,
        volunteer_id: Optional[int] = None,
        group_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[HourLedgerEntry]:
        clauses = ["1=1"]
        params: list[object] = []

        if volunteer_id is not None:
            clauses.append("user_id=%s")
            params.append(int(volunteer_id))
        if group_id is not None:
            clauses.append("group_id=%s")
            params.append(int(group_id))
        if start is not None:
            clauses.append("date >= %s")
            params.append(start)
        if end is not None:
            clauses.append("date <= %s")
            params.append(end)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM volunteer_logs WHERE {where}", tuple(params))
            return [to_entry(r) for r in fetchall(cur)]

    def group_report_rows(self, *, group_id: int, start: date, end: date) -> Sequence[GroupReportRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT vl.entry_id, vl.user_id, u.name, u.email, vl.date, vl.hours, vl.minutes, vl.description
                FROM volunteer_logs vl
                JOIN users u ON u.user_id = vl.user_id
                WHERE vl.group_id=%s AND vl.approved=1 AND vl.date BETWEEN %s AND %s
                ORDER BY vl.date DESC, u.name ASC
                """,
                (int(group_id), start, end),
            )
            return [
                GroupReportRow(
                    entry_id=int(r["entry_id"]),
                    volunteer_id=int(r["user_id"]),
                    volunteer_name=r["name"],
                    email=r["email"],
                    date=r["date"],
                    hours=int(r["hours"]),
                    minutes=int(r["minutes"]),
                    description=r["description"],
                )
                for r in fetchall(cur)
            ]
