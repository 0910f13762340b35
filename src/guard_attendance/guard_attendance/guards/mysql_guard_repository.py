from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import Guard
from .repository import GuardRepository

_COLUMNS = (
    "id, user_id, employee_id, first_name, last_name, phone_number, site_id, "
    "hourly_rate, biometric_data, is_active, created_at"
)


def _row_to_guard(r: Dict[str, Any]) -> Guard:
    rate = r.get("hourly_rate")
    return Guard(
        id=str(r["id"]),
        user_id=str(r["user_id"]),
        employee_id=r["employee_id"],
        first_name=r["first_name"],
        last_name=r["last_name"],
        phone_number=r.get("phone_number"),
        site_id=r.get("site_id"),
        hourly_rate=Decimal(str(rate)) if rate is not None else None,
        biometric_data=load_json(r.get("biometric_data")),
        is_active=bool(r["is_active"]),
        created_at=r.get("created_at"),
    )


class MySQLGuardRepository(GuardRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Guard]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM guards ORDER BY last_name ASC, first_name ASC")
            return [_row_to_guard(r) for r in fetchall(cur)]

    def get_by_id(self, guard_id: str) -> Optional[Guard]:
        return self._get_one("id", guard_id)

    def get_by_user_id(self, user_id: str) -> Optional[Guard]:
        return self._get_one("user_id", user_id)

    def get_by_employee_id(self, employee_id: str) -> Optional[Guard]:
        return self._get_one("employee_id", employee_id)

    def _get_one(self, column: str, value: str) -> Optional[Guard]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM guards WHERE {column}=%s", (value,))
            r = fetchone(cur)
            return _row_to_guard(r) if r else None

    def create(self, guard: Guard) -> Guard:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO guards(id, user_id, employee_id, first_name, last_name, phone_number,
                                   site_id, hourly_rate, biometric_data, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    guard.id,
                    guard.user_id,
                    guard.employee_id,
                    guard.first_name,
                    guard.last_name,
                    guard.phone_number,
                    guard.site_id,
                    guard.hourly_rate,
                    dump_json(guard.biometric_data),
                    int(guard.is_active),
                ),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM guards WHERE id=%s", (guard.id,))
            return _row_to_guard(fetchone(cur))

    def set_active(self, guard_id: str, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE guards SET is_active=%s WHERE id=%s", (int(is_active), guard_id))
            return cur.rowcount > 0
