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
    @app.route("/api/exceptions/pending", methods=["GET"], endpoint="pending_exceptions")
    @login_required
    def pending_exceptions():
        try:
            return jsonify(to_json_list(container.recorder.pending()))
        except Exception:
            logger.exception("Failed to fetch exceptions")
            return error("Failed to fetch exceptions", 500)

    @app.route("/api/exceptions/<exception_id>", methods=["PATCH"], endpoint="review_exception")
    @roles_required(Role.SUPERVISOR, Role.HR, Role.ADMIN)
    def review_exception(exception_id: str):
        try:
            reviewed = container.workflow.review_request(exception_id, json_body(), context=audit_context())
            return jsonify(to_json(reviewed))
        except (ValidationError, NotFoundError) as e:
            return error(f"Failed to update exception: {e}", 400)
        except PersistenceError:
            return error("Failed to update exception", 500)
        except Exception:
            logger.exception("Failed to update exception %s", exception_id)
            return error("Failed to update exception", 500)
