from __future__ import annotations

from dataclasses import replace

import pytest

from src.guard_attendance.guard_attendance.core.enums import AuditResult, ShiftStatus


def _clock_in_body(ids, score=92, position=None):
    position = position or ids.at_post
    return {
        "shiftId": ids.shift,
        "latitude": position.latitude,
        "longitude": position.longitude,
        "biometricScore": score,
    }


@pytest.mark.parametrize(
    "method,path",
    [
        ("get", "/api/guards"),
        ("get", "/api/sites"),
        ("get", "/api/shifts/active"),
        ("get", "/api/attendance/today"),
        ("post", "/api/attendance/clock-in"),
        ("get", "/api/exceptions/pending"),
        ("get", "/api/audit-logs"),
        ("get", "/api/my-guard-profile"),
        ("get", "/api/user"),
    ],
)
def test_routes_require_a_session(client, method, path):
    resp = getattr(client, method)(path)
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Not authenticated"}


def test_login_and_current_user(client):
    bad = client.post("/api/login", json={"username": "guard", "password": "nope"})
    assert bad.status_code == 401

    ok = client.post("/api/login", json={"username": "guard", "password": "guard123"})
    assert ok.status_code == 200
    assert ok.get_json()["role"] == "guard"

    me = client.get("/api/user").get_json()
    assert me["username"] == "guard"
    assert "passwordHash" not in me

    client.post("/api/logout")
    assert client.get("/api/user").status_code == 401


def test_register_returns_201(client):
    resp = client.post("/api/register", json={"username": "mwangi", "password": "secret1", "email": "m@example.com"})
    assert resp.status_code == 201
    assert resp.get_json()["role"] == "guard"

    dup = client.post("/api/register", json={"username": "mwangi", "password": "secret1", "email": "m@example.com"})
    assert dup.status_code == 400


def test_wrong_role_is_forbidden(login_as, ids):
    client = login_as(ids.guard_user)
    resp = client.post("/api/sites", json={"name": "x"})
    assert resp.status_code == 403
    assert client.get("/api/settings").status_code == 403


def test_clock_in_then_out_over_http(login_as, ids, repos, clock):
    client = login_as(ids.guard_user)

    resp = client.post("/api/attendance/clock-in", json=_clock_in_body(ids))
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["status"] == "verified"
    assert body["clockInBiometricScore"] == 92
    assert body["shiftId"] == ids.shift

    assert client.get(f"/api/guards/{ids.guard}/on-duty").get_json() == {"guardId": ids.guard, "onDuty": True}
    assert [a["id"] for a in client.get("/api/attendance/today").get_json()] == [body["id"]]

    dup = client.post("/api/attendance/clock-in", json=_clock_in_body(ids))
    assert dup.status_code == 400
    assert dup.get_json()["error"].startswith("Failed to clock in")

    clock.advance(hours=8)
    out = client.post(
        "/api/attendance/clock-out",
        json={"attendanceId": body["id"], "latitude": ids.at_post.latitude, "longitude": ids.at_post.longitude, "biometricScore": 88},
    )
    assert out.status_code == 200
    assert out.get_json()["clockOutTime"] is not None
    assert client.get(f"/api/guards/{ids.guard}/on-duty").get_json()["onDuty"] is False


def test_clock_in_without_guard_profile(login_as, ids, repos):
    client = login_as(ids.supervisor_user)
    resp = client.post("/api/attendance/clock-in", json=_clock_in_body(ids))
    assert resp.status_code == 400
    assert "Guard profile not found" in resp.get_json()["error"]
    assert repos.audit.actions() == ["CLOCK_IN"]
    assert repos.audit.entries[0].result == AuditResult.FAILURE
    assert repos.audit.entries[0].user_id == ids.supervisor_user


def test_clock_in_with_invalid_payload(login_as, ids):
    client = login_as(ids.guard_user)
    assert client.post("/api/attendance/clock-in", json=_clock_in_body(ids, score="high")).status_code == 400
    assert client.post("/api/attendance/clock-in", data="not json").status_code == 400


def test_low_score_exception_review_flow(login_as, ids):
    client = login_as(ids.guard_user)
    client.post("/api/attendance/clock-in", json=_clock_in_body(ids, score=70))

    client = login_as(ids.supervisor_user)
    pending = client.get("/api/exceptions/pending").get_json()
    assert len(pending) == 1
    assert pending[0]["type"] == "low_biometric_score"

    resp = client.patch(f"/api/exceptions/{pending[0]['id']}", json={"status": "dismissed", "resolution": "ok"})
    assert resp.status_code == 200
    assert resp.get_json()["reviewedBy"] == ids.supervisor_user

    again = client.patch(f"/api/exceptions/{pending[0]['id']}", json={"status": "dismissed"})
    assert again.status_code == 400
    assert client.get("/api/exceptions/pending").get_json() == []


def test_guard_cannot_review_exceptions(login_as, ids):
    client = login_as(ids.guard_user)
    resp = client.patch("/api/exceptions/anything", json={"status": "dismissed"})
    assert resp.status_code == 403


def test_mark_absent(login_as, ids):
    client = login_as(ids.supervisor_user)
    resp = client.post("/api/attendance/absent", json={"shiftId": ids.shift})
    assert resp.status_code == 201
    assert resp.get_json()["clockInTime"] is None
    pending = client.get("/api/exceptions/pending").get_json()
    assert [(e["type"], e["severity"]) for e in pending] == [("absent", "high")]


def test_audit_logs_newest_first(login_as, ids):
    client = login_as(ids.guard_user)
    client.post("/api/attendance/clock-in", json=_clock_in_body(ids))
    client.post("/api/attendance/clock-in", json=_clock_in_body(ids))

    logs = client.get("/api/audit-logs?limit=1").get_json()
    assert len(logs) == 1
    assert logs[0]["action"] == "CLOCK_IN"
    assert logs[0]["result"] == "failure"
    assert client.get("/api/audit-logs?limit=abc").status_code == 400


def test_site_post_shift_creation(login_as, ids):
    client = login_as(ids.admin_user)
    site = client.post(
        "/api/sites", json={"name": "Upper Hill", "address": "Ngong Rd", "latitude": -1.29, "longitude": 36.81}
    )
    assert site.status_code == 201
    site_id = site.get_json()["id"]

    post = client.post(
        "/api/posts", json={"siteId": site_id, "name": "Lobby", "latitude": -1.29, "longitude": 36.81}
    )
    assert post.status_code == 201
    assert [p["name"] for p in client.get(f"/api/sites/{site_id}/posts").get_json()] == ["Lobby"]

    bad = client.post("/api/sites", json={"name": "No coords"})
    assert bad.status_code == 400
    assert bad.get_json()["error"].startswith("Invalid site data")

    shift = client.post(
        "/api/shifts",
        json={
            "guardId": ids.guard,
            "postId": post.get_json()["id"],
            "scheduledStart": "2026-02-01T20:00:00",
            "scheduledEnd": "2026-02-02T04:00:00",
        },
    )
    assert shift.status_code == 201
    assert len(client.get("/api/shifts/active").get_json()) == 2


def test_guard_profile_and_deactivate(login_as, ids):
    client = login_as(ids.guard_user)
    assert client.get("/api/my-guard-profile").get_json()["employeeId"] == "G-0001"

    client = login_as(ids.admin_user)
    assert client.get("/api/my-guard-profile").status_code == 404
    resp = client.post(f"/api/guards/{ids.guard}/deactivate")
    assert resp.status_code == 200
    assert resp.get_json()["isActive"] is False
    assert client.get("/api/guards/missing/on-duty").status_code == 404


def test_settings_round_trip(login_as, ids):
    client = login_as(ids.admin_user)
    assert client.get("/api/settings").get_json() == {
        "biometricMinScore": 85,
        "geofenceRadius": 100,
        "lateGraceMinutes": 5,
    }
    resp = client.put("/api/settings", json={"biometricMinScore": 75})
    assert resp.status_code == 200
    assert resp.get_json()["biometricMinScore"] == 75
    assert client.put("/api/settings", json={"biometricMinScore": 175}).status_code == 400

    client = login_as(ids.guard_user)
    verified = client.post("/api/attendance/clock-in", json=_clock_in_body(ids, score=80))
    assert verified.get_json()["status"] == "verified"


def test_deactivated_guard_cannot_clock_in(login_as, ids, repos):
    repos.guards.set_active(ids.guard, False)
    client = login_as(ids.guard_user)
    resp = client.post("/api/attendance/clock-in", json=_clock_in_body(ids))
    assert resp.status_code == 400
    assert repos.attendance.rows == {}
    assert repos.audit.actions() == ["CLOCK_IN"]


@pytest.mark.parametrize("body", ["nope", [1, 2], None])
def test_clock_in_with_non_object_body_is_audited_once(login_as, ids, repos, body):
    client = login_as(ids.guard_user)
    if body is None:
        resp = client.post("/api/attendance/clock-in", data="not json", content_type="application/json")
    else:
        resp = client.post("/api/attendance/clock-in", json=body)
    assert resp.status_code == 400
    assert repos.audit.actions() == ["CLOCK_IN"]
    assert repos.audit.entries[0].result == AuditResult.FAILURE
    assert repos.attendance.rows == {}


def test_clock_out_rejections_are_audited_once(login_as, ids, repos):
    client = login_as(ids.guard_user)
    assert client.post("/api/attendance/clock-out", json="nope").status_code == 400
    assert repos.audit.actions() == ["CLOCK_OUT"]

    client = login_as(ids.admin_user)
    resp = client.post(
        "/api/attendance/clock-out",
        json={"attendanceId": ids.shift, "latitude": ids.at_post.latitude, "longitude": ids.at_post.longitude, "biometricScore": 90},
    )
    assert resp.status_code == 400
    assert repos.audit.actions() == ["CLOCK_OUT", "CLOCK_OUT"]
    assert {e.result for e in repos.audit.entries} == {AuditResult.FAILURE}


def test_mark_absent_with_non_object_body_is_audited_once(login_as, ids, repos):
    client = login_as(ids.supervisor_user)
    resp = client.post("/api/attendance/absent", json=["shiftId"])
    assert resp.status_code == 400
    assert repos.audit.actions() == ["MARK_ABSENT"]
    assert repos.audit.entries[0].result == AuditResult.FAILURE
    assert repos.attendance.rows == {}


def test_review_with_non_object_body_is_audited_once(login_as, ids, repos):
    client = login_as(ids.supervisor_user)
    resp = client.patch("/api/exceptions/abc", json=[])
    assert resp.status_code == 400
    assert repos.audit.actions() == ["REVIEW_EXCEPTION"]
    entry = repos.audit.entries[0]
    assert entry.result == AuditResult.FAILURE
    assert entry.resource_id == "abc"
    assert entry.user_id == ids.supervisor_user


def test_fractional_biometric_score_is_rejected(login_as, ids, repos):
    client = login_as(ids.guard_user)
    resp = client.post("/api/attendance/clock-in", json=_clock_in_body(ids, score=84.2))
    assert resp.status_code == 400
    assert "whole number" in resp.get_json()["error"]
    assert repos.attendance.rows == {}
    assert repos.audit.actions() == ["CLOCK_IN"]

    client = login_as(ids.admin_user)
    assert client.put("/api/settings", json={"biometricMinScore": 84.5}).status_code == 400


def test_clock_in_on_cancelled_shift_is_rejected(login_as, ids, repos):
    repos.shifts.by_id[ids.shift] = replace(repos.shifts.by_id[ids.shift], status=ShiftStatus.CANCELLED)
    client = login_as(ids.guard_user)
    resp = client.post("/api/attendance/clock-in", json=_clock_in_body(ids))
    assert resp.status_code == 400
    assert "cancelled" in resp.get_json()["error"]
    assert repos.attendance.rows == {}
    assert repos.audit.actions() == ["CLOCK_IN"]
