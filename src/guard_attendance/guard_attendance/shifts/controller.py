from __future__ import annotations

import logging

from flask import Flask, jsonify

from ..common.serialization import to_json, to_json_list
from ..common.web import audit_context, error, json_body, login_required, roles_required
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import PersistenceError, ValidationError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/shifts/active", methods=["GET"], endpoint="active_shifts")
    @login_required
    def active_shifts():
        try:
            return jsonify(to_json_list(container.shift_service.active_shifts()))
        except Exception:
            logger.exception("Failed to fetch active shifts")
            return error("Failed to fetch active shifts", 500)

    @app.route("/api/shifts", methods=["POST"], endpoint="create_shift")
    @roles_required(Role.SUPERVISOR, Role.HR, Role.ADMIN)
    def create_shift():
        try:
            shift = container.shift_service.create_shift(json_body(), context=audit_context())
            return jsonify(to_json(shift)), 201
        except ValidationError as e:
            return error(f"Invalid shift data: {e}", 400)
        except PersistenceError:
            return error("Failed to create shift", 500)
        except Exception:
            logger.exception("Failed to create shift")
            return error("Failed to create shift", 500)
