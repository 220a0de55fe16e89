from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from mysql.connector import errorcode
from mysql.connector import errors as mysql_errors

from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection, one transaction.

    Commits when the block exits normally, rolls back on any exception.
    """

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        logger.debug("rolling back transaction", exc_info=True)
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def is_duplicate_key(exc: BaseException) -> bool:
    return isinstance(exc, mysql_errors.IntegrityError) and getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY
