from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.geofence import GeofenceCheck
from .attendance.ledger import AttendanceLedger
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.workflow import ClockWorkflow
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditRepository
from .audit.sink import AuditSink
from .core.constants import (
    DEFAULT_NOTIFIER_HISTORY,
    DEFAULT_NOTIFIER_QUEUE,
    DEFAULT_NOTIFIER_SEND_TIMEOUT,
    DEFAULT_SESSION_DAYS,
)
from .database.connection import DBConfig, DatabaseConnection
from .exceptions.mysql_exception_repository import MySQLExceptionRepository
from .exceptions.recorder import ExceptionRecorder
from .exceptions.repository import ExceptionRepository
from .guards.mysql_guard_repository import MySQLGuardRepository
from .guards.repository import GuardRepository
from .guards.service import GuardService
from .notifier.hub import Notifier
from .settings.model import SystemSettings
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.repository import SettingsRepository
from .settings.service import SettingsService
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.repository import ShiftRepository
from .shifts.service import ShiftService
from .sites.mysql_site_repository import MySQLSiteRepository
from .sites.repository import SiteRepository
from .sites.service import SiteService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    sites_repo: SiteRepository
    guards_repo: GuardRepository
    shifts_repo: ShiftRepository
    attendance_repo: AttendanceRepository
    exceptions_repo: ExceptionRepository
    audit_repo: AuditRepository
    settings_repo: SettingsRepository

    audit: AuditSink
    notifier: Notifier
    auth_service: AuthService
    settings_service: SettingsService
    site_service: SiteService
    guard_service: GuardService
    shift_service: ShiftService
    ledger: AttendanceLedger
    recorder: ExceptionRecorder
    workflow: ClockWorkflow

    session_days: int = DEFAULT_SESSION_DAYS


def assemble(
    *,
    users_repo: UserRepository,
    sites_repo: SiteRepository,
    guards_repo: GuardRepository,
    shifts_repo: ShiftRepository,
    attendance_repo: AttendanceRepository,
    exceptions_repo: ExceptionRepository,
    audit_repo: AuditRepository,
    settings_repo: SettingsRepository,
    defaults: Optional[SystemSettings] = None,
    notifier_history: int = DEFAULT_NOTIFIER_HISTORY,
    notifier_queue: int = DEFAULT_NOTIFIER_QUEUE,
    notifier_send_timeout: float = DEFAULT_NOTIFIER_SEND_TIMEOUT,
    session_days: int = DEFAULT_SESSION_DAYS,
    conn: Optional[DatabaseConnection] = None,
    clock=None,
) -> Container:
    """Wire services over the given repositories (MySQL or in-memory)."""

    timed = {"clock": clock} if clock else {}

    audit = AuditSink(audit_repo, **timed)
    notifier = Notifier(
        history=notifier_history,
        queue_size=notifier_queue,
        send_timeout=notifier_send_timeout,
        **timed,
    )
    settings_service = SettingsService(settings_repo, audit, defaults=defaults)
    shift_service = ShiftService(shifts_repo, guards_repo, sites_repo, audit, **timed)
    guard_service = GuardService(guards_repo, users_repo, sites_repo, audit)
    ledger = AttendanceLedger(
        attendance_repo,
        threshold=lambda: settings_service.current().biometric_min_score,
        **timed,
    )
    recorder = ExceptionRecorder(exceptions_repo, attendance_repo, **timed)
    geofence = GeofenceCheck(sites_repo, default_radius=lambda: settings_service.current().geofence_radius)
    workflow = ClockWorkflow(
        ledger,
        recorder,
        shift_service,
        guard_service,
        geofence,
        settings_service,
        audit,
        notifier,
        **timed,
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        sites_repo=sites_repo,
        guards_repo=guards_repo,
        shifts_repo=shifts_repo,
        attendance_repo=attendance_repo,
        exceptions_repo=exceptions_repo,
        audit_repo=audit_repo,
        settings_repo=settings_repo,
        audit=audit,
        notifier=notifier,
        auth_service=AuthService(users_repo),
        settings_service=settings_service,
        site_service=SiteService(sites_repo, audit),
        guard_service=guard_service,
        shift_service=shift_service,
        ledger=ledger,
        recorder=recorder,
        workflow=workflow,
        session_days=session_days,
    )


def build_container(
    *,
    db_config: dict,
    defaults: Optional[SystemSettings] = None,
    notifier_history: int = DEFAULT_NOTIFIER_HISTORY,
    notifier_queue: int = DEFAULT_NOTIFIER_QUEUE,
    notifier_send_timeout: float = DEFAULT_NOTIFIER_SEND_TIMEOUT,
    session_days: int = DEFAULT_SESSION_DAYS,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    return assemble(
        users_repo=MySQLUserRepository(conn),
        sites_repo=MySQLSiteRepository(conn),
        guards_repo=MySQLGuardRepository(conn),
        shifts_repo=MySQLShiftRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        exceptions_repo=MySQLExceptionRepository(conn),
        audit_repo=MySQLAuditRepository(conn),
        settings_repo=MySQLSettingsRepository(conn),
        defaults=defaults,
        notifier_history=notifier_history,
        notifier_queue=notifier_queue,
        notifier_send_timeout=notifier_send_timeout,
        session_days=session_days,
        conn=conn,
    )
