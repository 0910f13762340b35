from __future__ import annotations

import logging

from flask import Flask, jsonify

from ..common.serialization import to_json, to_json_list
from ..common.web import audit_context, error, json_body, login_required, roles_required
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import NotFoundError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/today", methods=["GET"], endpoint="todays_attendance")
    @login_required
    def todays_attendance():
        try:
            return jsonify(to_json_list(container.ledger.todays_attendance()))
        except Exception:
            logger.exception("Failed to fetch attendance")
            return error("Failed to fetch attendance", 500)

    @app.route("/api/attendance/clock-in", methods=["POST"], endpoint="clock_in")
    @login_required
    def clock_in():
        try:
            result = container.workflow.clock_in_request(json_body(), context=audit_context())
            return jsonify(to_json(result.attendance)), 201
        except (ValidationError, NotFoundError) as e:
            return error(f"Failed to clock in: {e}", 400)
        except PersistenceError:
            return error("Failed to clock in", 500)
        except Exception:
            logger.exception("Clock-in failed")
            return error("Failed to clock in", 500)

    @app.route("/api/attendance/clock-out", methods=["POST"], endpoint="clock_out")
    @login_required
    def clock_out():
        try:
            result = container.workflow.clock_out_request(json_body(), context=audit_context())
            return jsonify(to_json(result.attendance))
        except (ValidationError, NotFoundError) as e:
            return error(f"Failed to clock out: {e}", 400)
        except PersistenceError:
            return error("Failed to clock out", 500)
        except Exception:
            logger.exception("Clock-out failed")
            return error("Failed to clock out", 500)

    @app.route("/api/attendance/absent", methods=["POST"], endpoint="mark_absent")
    @roles_required(Role.SUPERVISOR, Role.HR, Role.ADMIN)
    def mark_absent():
        try:
            result = container.workflow.absence_request(json_body(), context=audit_context())
            return jsonify(to_json(result.attendance)), 201
        except (ValidationError, NotFoundError) as e:
            return error(f"Failed to mark absence: {e}", 400)
        except PersistenceError:
            return error("Failed to mark absence", 500)
        except Exception:
            logger.exception("Marking absence failed")
            return error("Failed to mark absence", 500)

    @app.route("/api/guards/<guard_id>/on-duty", methods=["GET"], endpoint="guard_on_duty")
    @login_required
    def guard_on_duty(guard_id: str):
        try:
            guard = container.guard_service.get_guard(guard_id)
            return jsonify({"guardId": guard.id, "onDuty": container.ledger.is_on_duty(guard.id)})
        except NotFoundError as e:
            return error(str(e), 404)
        except Exception:
            logger.exception("Failed to check duty status for %s", guard_id)
            return error("Failed to check duty status", 500)
