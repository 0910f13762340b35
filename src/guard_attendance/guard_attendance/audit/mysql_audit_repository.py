from __future__ import annotations

from typing import Sequence

from ..core.enums import AuditResult
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, load_json
from .model import AuditLog
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, entry: AuditLog) -> AuditLog:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(id, user_id, action, resource, resource_id, details,
                                       ip_address, user_agent, result, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.id,
                    entry.user_id,
                    entry.action,
                    entry.resource,
                    entry.resource_id,
                    dump_json(entry.details),
                    entry.ip_address,
                    (entry.user_agent or "")[:500] or None,
                    entry.result.value,
                    entry.created_at,
                ),
            )
        return entry

    def recent(self, limit: int) -> Sequence[AuditLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, user_id, action, resource, resource_id, details,
                       ip_address, user_agent, result, created_at
                FROM audit_logs
                ORDER BY created_at DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [
                AuditLog(
                    id=str(r["id"]),
                    user_id=r.get("user_id"),
                    action=r["action"],
                    resource=r["resource"],
                    resource_id=r.get("resource_id"),
                    details=load_json(r.get("details")) or {},
                    ip_address=r.get("ip_address"),
                    user_agent=r.get("user_agent"),
                    result=AuditResult(r["result"]),
                    created_at=r["created_at"],
                )
                for r in fetchall(cur)
            ]
