from __future__ import annotations

import logging

from flask import Flask, jsonify

from ..common.serialization import to_json, to_json_list
from ..common.web import audit_context, current_user_id, error, json_body, login_required, roles_required
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import NotFoundError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/guards", methods=["GET"], endpoint="list_guards")
    @login_required
    def list_guards():
        try:
            return jsonify(to_json_list(container.guard_service.list_guards()))
        except Exception:
            logger.exception("Failed to fetch guards")
            return error("Failed to fetch guards", 500)

    @app.route("/api/guards", methods=["POST"], endpoint="create_guard")
    @roles_required(Role.HR, Role.ADMIN)
    def create_guard():
        try:
            guard = container.guard_service.create_guard(json_body(), context=audit_context())
            return jsonify(to_json(guard)), 201
        except ValidationError as e:
            return error(f"Invalid guard data: {e}", 400)
        except PersistenceError:
            return error("Failed to create guard", 500)
        except Exception:
            logger.exception("Failed to create guard")
            return error("Failed to create guard", 500)

    @app.route("/api/guards/<guard_id>/deactivate", methods=["POST"], endpoint="deactivate_guard")
    @roles_required(Role.HR, Role.ADMIN)
    def deactivate_guard(guard_id: str):
        try:
            guard = container.guard_service.deactivate(guard_id, context=audit_context())
            return jsonify(to_json(guard))
        except NotFoundError as e:
            return error(str(e), 404)
        except Exception:
            logger.exception("Failed to deactivate guard %s", guard_id)
            return error("Failed to deactivate guard", 500)

    @app.route("/api/my-guard-profile", methods=["GET"], endpoint="my_guard_profile")
    def my_guard_profile():
        user_id = current_user_id()
        if not user_id:
            return error("Not authenticated", 401)
        try:
            return jsonify(to_json(container.guard_service.get_profile_for_user(user_id)))
        except NotFoundError:
            return error("Guard profile not found", 404)
        except Exception:
            logger.exception("Failed to fetch guard profile")
            return error("Failed to fetch guard profile", 500)
