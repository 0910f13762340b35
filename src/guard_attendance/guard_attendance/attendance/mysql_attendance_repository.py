from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, as_int, db_cursor, fetchall, fetchone
from .model import Attendance, Coordinates
from .repository import AttendanceRepository

_COLUMNS = (
    "id, shift_id, guard_id, clock_in_time, clock_out_time, "
    "clock_in_latitude, clock_in_longitude, clock_out_latitude, clock_out_longitude, "
    "clock_in_biometric_score, clock_out_biometric_score, status, notes, verified_by, verified_at, created_at"
)


def _row_to_attendance(r: Dict[str, Any]) -> Attendance:
    return Attendance(
        id=str(r["id"]),
        shift_id=str(r["shift_id"]),
        guard_id=str(r["guard_id"]),
        clock_in_time=r.get("clock_in_time"),
        clock_out_time=r.get("clock_out_time"),
        clock_in_latitude=as_float(r.get("clock_in_latitude")),
        clock_in_longitude=as_float(r.get("clock_in_longitude")),
        clock_out_latitude=as_float(r.get("clock_out_latitude")),
        clock_out_longitude=as_float(r.get("clock_out_longitude")),
        clock_in_biometric_score=as_int(r.get("clock_in_biometric_score")),
        clock_out_biometric_score=as_int(r.get("clock_out_biometric_score")),
        status=AttendanceStatus(r["status"]),
        notes=r.get("notes"),
        verified_by=r.get("verified_by"),
        verified_at=r.get("verified_at"),
        created_at=r.get("created_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: str) -> Optional[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE id=%s", (attendance_id,))
            r = fetchone(cur)
            return _row_to_attendance(r) if r else None

    def get_open_for_shift(self, shift_id: str) -> Optional[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE open_shift_id=%s", (shift_id,))
            r = fetchone(cur)
            return _row_to_attendance(r) if r else None

    def latest_for_guard(self, guard_id: str) -> Optional[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE guard_id=%s
                ORDER BY created_at DESC
                LIMIT 1
                """,
                (guard_id,),
            )
            r = fetchone(cur)
            return _row_to_attendance(r) if r else None

    def insert(self, attendance: Attendance) -> Attendance:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(
                    id, shift_id, guard_id, clock_in_time,
                    clock_in_latitude, clock_in_longitude, clock_in_biometric_score,
                    status, notes, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    attendance.id,
                    attendance.shift_id,
                    attendance.guard_id,
                    attendance.clock_in_time,
                    attendance.clock_in_latitude,
                    attendance.clock_in_longitude,
                    attendance.clock_in_biometric_score,
                    attendance.status.value,
                    attendance.notes,
                    attendance.created_at,
                ),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE id=%s", (attendance.id,))
            return _row_to_attendance(fetchone(cur))

    def close(
        self,
        *,
        attendance_id: str,
        clock_out_time: datetime,
        position: Coordinates,
        score: int,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET clock_out_time=%s, clock_out_latitude=%s, clock_out_longitude=%s, clock_out_biometric_score=%s
                WHERE id=%s AND clock_out_time IS NULL AND clock_in_time IS NOT NULL
                """,
                (clock_out_time, position.latitude, position.longitude, int(score), attendance_id),
            )
            return cur.rowcount > 0

    def list_created_between(self, start: datetime, end: datetime) -> Sequence[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE created_at >= %s AND created_at < %s
                ORDER BY created_at ASC
                """,
                (start, end),
            )
            return [_row_to_attendance(r) for r in fetchall(cur)]
