from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import PersistenceError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


class DuplicateKeyError(PersistenceError):
    """A UNIQUE index rejected the write."""


class ForeignKeyError(PersistenceError):
    """A referenced row does not exist."""


def _translate(exc: mysql.connector.Error) -> PersistenceError:
    if exc.errno == errorcode.ER_DUP_ENTRY:
        return DuplicateKeyError(str(exc))
    if exc.errno in (errorcode.ER_NO_REFERENCED_ROW, errorcode.ER_NO_REFERENCED_ROW_2):
        return ForeignKeyError(str(exc))
    return PersistenceError("Database unavailable")


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        logger.error("Database connection failed: %s", e)
        raise PersistenceError("Database unavailable") from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        conn.rollback()
        if e.errno != errorcode.ER_DUP_ENTRY:
            logger.error("Database error: %s", e)
        raise _translate(e) from e
    except Exception:
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


def dump_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, default=str)


def load_json(value: Any) -> Any:
    """JSON columns come back as str or bytes depending on the connector build."""

    if value is None or isinstance(value, (dict, list)):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    return json.loads(value)


def as_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def as_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)
