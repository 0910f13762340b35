from __future__ import annotations

import logging

from flask import Flask, jsonify

from ..common.serialization import to_json
from ..common.web import audit_context, error, json_body, roles_required
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import PersistenceError, ValidationError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/settings", methods=["GET"], endpoint="get_settings")
    @roles_required(Role.ADMIN)
    def get_settings():
        return jsonify(to_json(container.settings_service.current()))

    @app.route("/api/settings", methods=["PUT"], endpoint="update_settings")
    @roles_required(Role.ADMIN)
    def update_settings():
        try:
            updated = container.settings_service.update(json_body(), context=audit_context())
            return jsonify(to_json(updated))
        except ValidationError as e:
            return error(str(e), 400)
        except PersistenceError:
            return error("Failed to update settings", 500)
        except Exception:
            logger.exception("Failed to update settings")
            return error("Failed to update settings", 500)
