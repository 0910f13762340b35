from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.serialization import to_json_list
from ..common.web import error, login_required
from ..container import Container
from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/audit-logs", methods=["GET"], endpoint="audit_logs")
    @login_required
    def audit_logs():
        try:
            return jsonify(to_json_list(container.audit.recent(request.args.get("limit"))))
        except ValidationError as e:
            return error(str(e), 400)
        except Exception:
            logger.exception("Failed to fetch audit logs")
            return error("Failed to fetch audit logs", 500)
