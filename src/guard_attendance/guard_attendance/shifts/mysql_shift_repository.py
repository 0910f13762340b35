from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import ShiftStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Shift
from .repository import ShiftRepository

_COLUMNS = "id, guard_id, post_id, scheduled_start, scheduled_end, status, created_at"


def _row_to_shift(r: Dict[str, Any]) -> Shift:
    return Shift(
        id=str(r["id"]),
        guard_id=str(r["guard_id"]),
        post_id=str(r["post_id"]),
        scheduled_start=r["scheduled_start"],
        scheduled_end=r["scheduled_end"],
        status=ShiftStatus(r["status"]),
        created_at=r.get("created_at"),
    )


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, shift_id: str) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM shifts WHERE id=%s", (shift_id,))
            r = fetchone(cur)
            return _row_to_shift(r) if r else None

    def list_starting_between(self, start: datetime, end: datetime) -> Sequence[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM shifts
                WHERE scheduled_start >= %s AND scheduled_start < %s
                ORDER BY scheduled_start ASC
                """,
                (start, end),
            )
            return [_row_to_shift(r) for r in fetchall(cur)]

    def create(self, shift: Shift) -> Shift:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shifts(id, guard_id, post_id, scheduled_start, scheduled_end, status)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (shift.id, shift.guard_id, shift.post_id, shift.scheduled_start, shift.scheduled_end, shift.status.value),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM shifts WHERE id=%s", (shift.id,))
            return _row_to_shift(fetchone(cur))

    def update_status(self, shift_id: str, status: ShiftStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE shifts SET status=%s WHERE id=%s", (status.value, shift_id))
            return cur.rowcount > 0
