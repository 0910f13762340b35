from __future__ import annotations

from datetime import timedelta

import pytest

from src.guard_attendance.guard_attendance.attendance.ledger import AttendanceLedger
from src.guard_attendance.guard_attendance.core.enums import ExceptionStatus, ExceptionType, Severity
from src.guard_attendance.guard_attendance.core.exceptions import InvalidTransition, NotFoundError, ValidationError
from src.guard_attendance.guard_attendance.exceptions.recorder import ExceptionRecorder

REVIEWER = "0b7e6b1e-0000-4000-8000-000000000002"


@pytest.fixture
def recorder(repos, clock):
    return ExceptionRecorder(repos.exceptions, repos.attendance, clock=clock)


@pytest.fixture
def attendance(repos, ids, fixed_now):
    return AttendanceLedger(repos.attendance).clock_in(ids.shift, ids.guard, ids.at_post, 70, fixed_now)


def test_flag_defaults_to_medium_and_pending(recorder, attendance):
    exc = recorder.flag(attendance.id, "low_biometric_score", "Biometric match score 70% below threshold")
    assert exc.type == ExceptionType.LOW_BIOMETRIC_SCORE
    assert exc.severity == Severity.MEDIUM
    assert exc.status == ExceptionStatus.PENDING
    assert exc.reviewed_by is None


def test_flag_unknown_attendance(recorder):
    with pytest.raises(NotFoundError):
        recorder.flag("00000000-0000-4000-8000-000000000000", ExceptionType.ABSENT, "No clock-in")


@pytest.mark.parametrize("field,value", [("exception_type", "sleeping"), ("severity", "critical")])
def test_flag_validates_type_and_severity(recorder, attendance, field, value):
    kwargs = {"exception_type": ExceptionType.ABSENT, "severity": Severity.LOW}
    kwargs[field] = value
    with pytest.raises(ValidationError):
        recorder.flag(attendance.id, description="x", **kwargs)


def test_pending_is_newest_first_regardless_of_insertion(recorder, repos, attendance, clock):
    clock.advance(minutes=10)
    newer = recorder.flag(attendance.id, ExceptionType.GEOFENCE_VIOLATION, "outside")
    clock.now = clock.now - timedelta(minutes=30)
    older = recorder.flag(attendance.id, ExceptionType.LATE_ARRIVAL, "late")

    assert [e.id for e in recorder.pending()] == [newer.id, older.id]


def test_review_sets_reviewer_time_and_resolution(recorder, attendance, fixed_now):
    exc = recorder.flag(attendance.id, ExceptionType.LOW_BIOMETRIC_SCORE, "low")
    at = fixed_now + timedelta(hours=1)
    reviewed = recorder.review(exc.id, REVIEWER, "resolved", "Re-verified on site", at)

    assert reviewed.status == ExceptionStatus.RESOLVED
    assert reviewed.reviewed_by == REVIEWER
    assert reviewed.reviewed_at == at
    assert reviewed.resolution == "Re-verified on site"
    assert recorder.pending() == []


def test_reviewed_can_move_on_to_resolved(recorder, attendance):
    exc = recorder.flag(attendance.id, ExceptionType.LOW_BIOMETRIC_SCORE, "low")
    recorder.review(exc.id, REVIEWER, ExceptionStatus.REVIEWED, "looking into it")
    recorder.review(exc.id, REVIEWER, ExceptionStatus.REVIEWED, "second note")
    assert recorder.review(exc.id, REVIEWER, ExceptionStatus.RESOLVED).status == ExceptionStatus.RESOLVED


@pytest.mark.parametrize("closed", ["resolved", "dismissed"])
def test_closed_exceptions_cannot_be_reviewed_again(recorder, attendance, closed):
    exc = recorder.flag(attendance.id, ExceptionType.LOW_BIOMETRIC_SCORE, "low")
    recorder.review(exc.id, REVIEWER, closed)
    with pytest.raises(InvalidTransition):
        recorder.review(exc.id, REVIEWER, closed)


@pytest.mark.parametrize("status", ["pending", "approved", None])
def test_review_rejects_non_review_statuses(recorder, attendance, status):
    exc = recorder.flag(attendance.id, ExceptionType.LOW_BIOMETRIC_SCORE, "low")
    with pytest.raises(InvalidTransition):
        recorder.review(exc.id, REVIEWER, status)


def test_review_unknown_exception(recorder):
    with pytest.raises(NotFoundError):
        recorder.review("missing", REVIEWER, "reviewed")
