from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import ExceptionStatus, ExceptionType, Severity
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceException
from .repository import ExceptionRepository

_COLUMNS = "id, attendance_id, type, description, severity, status, reviewed_by, reviewed_at, resolution, created_at"


def _row_to_exception(r: Dict[str, Any]) -> AttendanceException:
    return AttendanceException(
        id=str(r["id"]),
        attendance_id=str(r["attendance_id"]),
        type=ExceptionType(r["type"]),
        description=r["description"],
        severity=Severity(r["severity"]),
        status=ExceptionStatus(r["status"]),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
        resolution=r.get("resolution"),
        created_at=r.get("created_at"),
    )


class MySQLExceptionRepository(ExceptionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, exception: AttendanceException) -> AttendanceException:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO exceptions(id, attendance_id, type, description, severity, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    exception.id,
                    exception.attendance_id,
                    exception.type.value,
                    exception.description,
                    exception.severity.value,
                    exception.status.value,
                    exception.created_at,
                ),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM exceptions WHERE id=%s", (exception.id,))
            return _row_to_exception(fetchone(cur))

    def get_by_id(self, exception_id: str) -> Optional[AttendanceException]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM exceptions WHERE id=%s", (exception_id,))
            r = fetchone(cur)
            return _row_to_exception(r) if r else None

    def update_review(
        self,
        *,
        exception_id: str,
        status: ExceptionStatus,
        reviewed_by: str,
        reviewed_at: datetime,
        resolution: Optional[str],
    ) -> Optional[AttendanceException]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE exceptions
                SET status=%s, reviewed_by=%s, reviewed_at=%s, resolution=%s
                WHERE id=%s
                """,
                (status.value, reviewed_by, reviewed_at, resolution, exception_id),
            )
            if cur.rowcount == 0:
                return None
            cur.execute(f"SELECT {_COLUMNS} FROM exceptions WHERE id=%s", (exception_id,))
            r = fetchone(cur)
            return _row_to_exception(r) if r else None

    def list_pending(self) -> Sequence[AttendanceException]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM exceptions
                WHERE status=%s
                ORDER BY created_at DESC
                """,
                (ExceptionStatus.PENDING.value,),
            )
            return [_row_to_exception(r) for r in fetchall(cur)]
