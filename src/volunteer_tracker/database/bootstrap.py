from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Mapping

from werkzeug.security import generate_password_hash

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

DEMO_USERS = (
    # name, email, password, role
    ("Admin Demo", "admin@example.org", "admin123", "ADMIN"),
    ("Vera Volunteer", "volunteer@example.org", "volunteer123", "VOLUNTEER"),
)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema/seed files (handles ';' inside quotes
    # and skips '--' line comments).
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    lines = [line for line in sql.splitlines() if not line.lstrip().startswith("--")]
    for ch in "\n".join(lines):
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
            buf.append(ch)
            continue

        if ch == '"' and not in_single:
            in_double = not in_double
            buf.append(ch)
            continue

        if ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _exec_sql(cur, sql: str) -> None:
    for stmt in _iter_sql_statements(sql):
        cur.execute(stmt)


def ensure_database_exists(db_config: Mapping) -> None:
    target = DBConfig.from_mapping(db_config)
    conn = DatabaseConnection(target).connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def _run_sql_file(db_config: Mapping, path: str | Path) -> None:
    target = DBConfig.from_mapping(db_config)
    sql = _strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))

    conn = DatabaseConnection(target).connect()
    try:
        cur = conn.cursor()
        _exec_sql(cur, sql)
        conn.commit()
    finally:
        conn.close()
    logger.info("applied %s to %s", Path(path).name, target.describe())


def apply_schema(db_config: Mapping, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    _run_sql_file(db_config, schema_path)


def apply_seed_sql(db_config: Mapping, *, seed_path: str | Path) -> None:
    _run_sql_file(db_config, seed_path)


def ensure_demo_users(db_config: Mapping) -> None:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect()
    try:
        cur = conn.cursor(dictionary=True)
        for name, email, password, role in DEMO_USERS:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT user_id FROM users WHERE email=%s", (email,))
            if cur.fetchone():
                cur.execute(
                    """
                    UPDATE users
                    SET name=%s, password_hash=%s, role=%s, is_active=1
                    WHERE email=%s
                    """,
                    (name, password_hash, role, email),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO users (name, email, password_hash, role, is_active)
                    VALUES (%s, %s, %s, %s, 1)
                    """,
                    (name, email, password_hash, role),
                )
        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: Mapping) -> list[str]:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
