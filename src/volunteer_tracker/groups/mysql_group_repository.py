from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import GroupRole
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import Group, GroupMember, GroupMembership
from .repository import GroupRepository

_SELECT = """
    SELECT g.group_id, g.name, g.description, g.category, g.created_by,
           (SELECT COUNT(*) FROM user_groups ug WHERE ug.group_id = g.group_id) AS member_count
    FROM volunteer_groups g
"""


def _to_group(r: Dict[str, Any]) -> Group:
    return Group(
        group_id=int(r["group_id"]),
        name=r["name"],
        description=r.get("description"),
        category=r.get("category"),
        created_by=r.get("created_by"),
        member_count=int(r.get("member_count") or 0),
    )


class MySQLGroupRepository(GroupRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, group_id: int) -> Optional[Group]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE g.group_id=%s", (int(group_id),))
            r = fetchone(cur)
            return _to_group(r) if r else None

    def get_by_name(self, name: str) -> Optional[Group]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE g.name=%s", (name,))
            r = fetchone(cur)
            return _to_group(r) if r else None

    def list_all(self) -> Sequence[Group]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " ORDER BY g.name")
            return [_to_group(r) for r in fetchall(cur)]

    def list_for_user(self, user_id: int) -> Sequence[Group]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                JOIN user_groups mine ON mine.group_id = g.group_id AND mine.user_id = %s
                ORDER BY g.name
                """,
                (int(user_id),),
            )
            return [_to_group(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        name: str,
        description: Optional[str],
        category: Optional[str],
        created_by: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO volunteer_groups(name, description, category, created_by) VALUES(%s,%s,%s,%s)",
                (name, description, category, int(created_by)),
            )
            group_id = int(cur.lastrowid)
            cur.execute(
                "INSERT INTO user_groups(user_id, group_id, role) VALUES(%s,%s,%s)",
                (int(created_by), group_id, GroupRole.ADMIN.value),
            )
            return group_id

    def get_membership(self, *, user_id: int, group_id: int) -> Optional[GroupMembership]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT user_id, group_id, role, joined_at FROM user_groups WHERE user_id=%s AND group_id=%s",
                (int(user_id), int(group_id)),
            )
            r = fetchone(cur)
            if not r:
                return None
            return GroupMembership(
                user_id=int(r["user_id"]),
                group_id=int(r["group_id"]),
                role=GroupRole(r["role"]),
                joined_at=r.get("joined_at"),
            )

    def add_member(self, *, user_id: int, group_id: int, role: GroupRole = GroupRole.MEMBER) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO user_groups(user_id, group_id, role) VALUES(%s,%s,%s)",
                    (int(user_id), int(group_id), role.value),
                )
                return True
        except Exception as exc:
            if is_duplicate_key(exc):
                return False
            raise

    def remove_member(self, *, user_id: int, group_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM user_groups WHERE user_id=%s AND group_id=%s",
                (int(user_id), int(group_id)),
            )
            return cur.rowcount > 0

    def list_members(self, group_id: int) -> Sequence[GroupMember]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.user_id, u.name, u.email, ug.role, ug.joined_at
                FROM user_groups ug
                JOIN users u ON u.user_id = ug.user_id
                WHERE ug.group_id=%s
                ORDER BY ug.role ASC, u.name ASC
                """,
                (int(group_id),),
            )
            return [
                GroupMember(
                    user_id=int(r["user_id"]),
                    name=r["name"],
                    email=r["email"],
                    role=GroupRole(r["role"]),
                    joined_at=r.get("joined_at"),
                )
                for r in fetchall(cur)
            ]

    def count_admins(self, group_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM user_groups WHERE group_id=%s AND role=%s",
                (int(group_id), GroupRole.ADMIN.value),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0
