from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_COLUMNS = "user_id, name, email, password_hash, phone, role, is_active, created_at"


def _to_user(row: Dict[str, Any]) -> User:
    return User(
        user_id=int(row["user_id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        phone=row.get("phone"),
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", (email,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        phone: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(name, email, password_hash, phone, role, is_active)
                VALUES(%s,%s,%s,%s,%s,1)
                """,
                (name, email, password_hash, phone, role.value),
            )
            return int(cur.lastrowid)

    def set_role(self, user_id: int, *, role: Role) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET role=%s WHERE user_id=%s", (role.value, int(user_id)))
            return cur.rowcount > 0

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=%s WHERE user_id=%s", (1 if is_active else 0, int(user_id)))
            return cur.rowcount > 0

    def list_by_role(self, role: Role) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE role=%s AND is_active=1 ORDER BY created_at ASC",
                (role.value,),
            )
            return [_to_user(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users ORDER BY user_id DESC")
            return [_to_user(r) for r in fetchall(cur)]
