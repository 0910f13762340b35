from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.guard_attendance.guard_attendance.attendance.model import Attendance, Coordinates
from src.guard_attendance.guard_attendance.audit.model import AuditLog
from src.guard_attendance.guard_attendance.container import assemble
from src.guard_attendance.guard_attendance.core.enums import ExceptionStatus, Role
from src.guard_attendance.guard_attendance.core.exceptions import PersistenceError
from src.guard_attendance.guard_attendance.database.mysql_base import DuplicateKeyError
from src.guard_attendance.guard_attendance.exceptions.model import AttendanceException
from src.guard_attendance.guard_attendance.guards.model import Guard
from src.guard_attendance.guard_attendance.shifts.model import Shift
from src.guard_attendance.guard_attendance.sites.model import Post, Site
from src.guard_attendance.guard_attendance.users.model import User

SITE_ID = "6f1d7c1e-8a44-4b8e-9d0b-2f3a5c6d7e01"
POST_ID = "6f1d7c1e-8a44-4b8e-9d0b-2f3a5c6d7e11"
GUARD_USER_ID = "0b7e6b1e-0000-4000-8000-000000000001"
SUPERVISOR_USER_ID = "0b7e6b1e-0000-4000-8000-000000000002"
ADMIN_USER_ID = "0b7e6b1e-0000-4000-8000-000000000003"
GUARD_ID = "1c2d3e4f-0000-4000-8000-000000000001"
SHIFT_ID = "2d3e4f5a-0000-4000-8000-000000000001"

AT_POST = Coordinates(latitude=-1.2684, longitude=36.8109)
# roughly 1.1 km north of the post
FAR_AWAY = Coordinates(latitude=-1.2584, longitude=36.8109)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class InMemoryUsers:
    def __init__(self):
        self.by_id: dict[str, User] = {}

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.by_id.get(user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self.by_id.values() if u.username == username), None)

    def create_user(self, *, user_id, username, password_hash, email, role) -> User:
        if self.get_by_username(username):
            raise DuplicateKeyError("username")
        user = User(id=user_id, username=username, password_hash=password_hash, email=email, role=role)
        self.by_id[user_id] = user
        return user


class InMemorySites:
    def __init__(self):
        self.sites: dict[str, Site] = {}
        self.posts: dict[str, Post] = {}

    def list_sites(self):
        return list(self.sites.values())

    def get_site(self, site_id):
        return self.sites.get(site_id)

    def create_site(self, site):
        self.sites[site.id] = site
        return site

    def list_posts(self, site_id):
        return [p for p in self.posts.values() if p.site_id == site_id]

    def get_post(self, post_id):
        return self.posts.get(post_id)

    def create_post(self, post):
        self.posts[post.id] = post
        return post


class InMemoryGuards:
    def __init__(self):
        self.by_id: dict[str, Guard] = {}

    def list_all(self):
        return list(self.by_id.values())

    def get_by_id(self, guard_id):
        return self.by_id.get(guard_id)

    def get_by_user_id(self, user_id):
        return next((g for g in self.by_id.values() if g.user_id == user_id), None)

    def get_by_employee_id(self, employee_id):
        return next((g for g in self.by_id.values() if g.employee_id == employee_id), None)

    def create(self, guard):
        self.by_id[guard.id] = guard
        return guard

    def set_active(self, guard_id, is_active):
        guard = self.by_id.get(guard_id)
        if not guard:
            return False
        self.by_id[guard_id] = replace(guard, is_active=is_active)
        return True


class InMemoryShifts:
    def __init__(self):
        self.by_id: dict[str, Shift] = {}
        self.fail_updates = False

    def get_by_id(self, shift_id):
        return self.by_id.get(shift_id)

    def list_starting_between(self, start, end):
        items = [s for s in self.by_id.values() if start <= s.scheduled_start < end]
        return sorted(items, key=lambda s: s.scheduled_start)

    def create(self, shift):
        self.by_id[shift.id] = shift
        return shift

    def update_status(self, shift_id, status):
        if self.fail_updates:
            raise PersistenceError("Database unavailable")
        shift = self.by_id.get(shift_id)
        if not shift:
            return False
        self.by_id[shift_id] = replace(shift, status=status)
        return True


class InMemoryAttendance:
    def __init__(self):
        self.rows: dict[str, Attendance] = {}

    def get_by_id(self, attendance_id):
        return self.rows.get(attendance_id)

    def get_open_for_shift(self, shift_id):
        return next((a for a in self.rows.values() if a.shift_id == shift_id and a.is_open), None)

    def latest_for_guard(self, guard_id):
        mine = [a for a in self.rows.values() if a.guard_id == guard_id]
        return mine[-1] if mine else None

    def insert(self, attendance):
        if attendance.is_open and self.get_open_for_shift(attendance.shift_id):
            raise DuplicateKeyError("attendance_open_shift_uq")
        self.rows[attendance.id] = attendance
        return attendance

    def close(self, *, attendance_id, clock_out_time, position, score):
        row = self.rows.get(attendance_id)
        if not row or not row.is_open:
            return False
        self.rows[attendance_id] = replace(
            row,
            clock_out_time=clock_out_time,
            clock_out_latitude=position.latitude,
            clock_out_longitude=position.longitude,
            clock_out_biometric_score=score,
        )
        return True

    def list_created_between(self, start, end):
        return [a for a in self.rows.values() if start <= a.created_at < end]


class InMemoryExceptions:
    def __init__(self):
        self.by_id: dict[str, AttendanceException] = {}
        self.fail_writes = False

    def create(self, exception):
        if self.fail_writes:
            raise PersistenceError("Database unavailable")
        self.by_id[exception.id] = exception
        return exception

    def get_by_id(self, exception_id):
        return self.by_id.get(exception_id)

    def update_review(self, *, exception_id, status, reviewed_by, reviewed_at, resolution):
        exc = self.by_id.get(exception_id)
        if not exc:
            return None
        updated = replace(exc, status=status, reviewed_by=reviewed_by, reviewed_at=reviewed_at, resolution=resolution)
        self.by_id[exception_id] = updated
        return updated

    def list_pending(self):
        # insertion order on purpose; the recorder sorts
        return [e for e in self.by_id.values() if e.status == ExceptionStatus.PENDING]


class InMemoryAudit:
    def __init__(self):
        self.entries: list[AuditLog] = []
        self.fail_writes = False

    def append(self, entry):
        if self.fail_writes:
            raise PersistenceError("Database unavailable")
        self.entries.append(entry)
        return entry

    def recent(self, limit):
        return list(reversed(self.entries))[:limit]

    def actions(self):
        return [e.action for e in self.entries]


class InMemorySettings:
    def __init__(self):
        self.values: dict[str, str] = {}
        self.fail_reads = False

    def load(self):
        if self.fail_reads:
            raise PersistenceError("Database unavailable")
        return dict(self.values)

    def save(self, values, *, updated_by):
        self.values.update(values)


class RecordingSubscriber:
    def __init__(self, *, broken: bool = False):
        self.messages: list[str] = []
        self.broken = broken

    def send(self, data: str) -> None:
        if self.broken:
            raise ConnectionError("socket closed")
        self.messages.append(data)


@pytest.fixture
def fixed_now():
    return datetime(2026, 2, 1, 8, 0, 0)


@pytest.fixture
def clock(fixed_now):
    return FakeClock(fixed_now)


@pytest.fixture
def repos(fixed_now):
    r = SimpleNamespace(
        users=InMemoryUsers(),
        sites=InMemorySites(),
        guards=InMemoryGuards(),
        shifts=InMemoryShifts(),
        attendance=InMemoryAttendance(),
        exceptions=InMemoryExceptions(),
        audit=InMemoryAudit(),
        settings=InMemorySettings(),
    )

    r.users.by_id[GUARD_USER_ID] = User(
        id=GUARD_USER_ID,
        username="guard",
        password_hash=generate_password_hash("guard123"),
        email="guard@example.com",
        role=Role.GUARD,
    )
    r.users.by_id[SUPERVISOR_USER_ID] = User(
        id=SUPERVISOR_USER_ID,
        username="supervisor",
        password_hash=generate_password_hash("super123"),
        email="supervisor@example.com",
        role=Role.SUPERVISOR,
    )
    r.users.by_id[ADMIN_USER_ID] = User(
        id=ADMIN_USER_ID,
        username="admin",
        password_hash=generate_password_hash("admin123"),
        email="admin@example.com",
        role=Role.ADMIN,
    )
    r.sites.sites[SITE_ID] = Site(
        id=SITE_ID,
        name="Westlands Plaza",
        address="Waiyaki Way, Nairobi",
        latitude=-1.2683,
        longitude=36.8111,
        geofence_radius=150,
    )
    r.sites.posts[POST_ID] = Post(
        id=POST_ID,
        site_id=SITE_ID,
        name="Main Gate",
        latitude=AT_POST.latitude,
        longitude=AT_POST.longitude,
    )
    r.guards.by_id[GUARD_ID] = Guard(
        id=GUARD_ID,
        user_id=GUARD_USER_ID,
        employee_id="G-0001",
        first_name="Amina",
        last_name="Otieno",
        site_id=SITE_ID,
    )
    r.shifts.by_id[SHIFT_ID] = Shift(
        id=SHIFT_ID,
        guard_id=GUARD_ID,
        post_id=POST_ID,
        scheduled_start=fixed_now,
        scheduled_end=fixed_now + timedelta(hours=8),
    )
    return r


@pytest.fixture
def container(repos, clock):
    return assemble(
        users_repo=repos.users,
        sites_repo=repos.sites,
        guards_repo=repos.guards,
        shifts_repo=repos.shifts,
        attendance_repo=repos.attendance,
        exceptions_repo=repos.exceptions,
        audit_repo=repos.audit,
        settings_repo=repos.settings,
        clock=clock,
    )


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    from src.guard_attendance.guard_attendance.main import create_app

    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login_as(client, repos):
    def _login(user_id: str):
        user = repos.users.by_id[user_id]
        with client.session_transaction() as s:
            s["user_id"] = user.id
            s["role"] = user.role.value
        return client

    return _login


@pytest.fixture
def ids():
    return SimpleNamespace(
        site=SITE_ID,
        post=POST_ID,
        guard_user=GUARD_USER_ID,
        supervisor_user=SUPERVISOR_USER_ID,
        admin_user=ADMIN_USER_ID,
        guard=GUARD_ID,
        shift=SHIFT_ID,
        at_post=AT_POST,
        far_away=FAR_AWAY,
    )


@pytest.fixture
def make_subscriber():
    return RecordingSubscriber
