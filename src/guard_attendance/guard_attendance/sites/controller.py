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
    @app.route("/api/sites", methods=["GET"], endpoint="list_sites")
    @login_required
    def list_sites():
        try:
            return jsonify(to_json_list(container.site_service.list_sites()))
        except Exception:
            logger.exception("Failed to fetch sites")
            return error("Failed to fetch sites", 500)

    @app.route("/api/sites", methods=["POST"], endpoint="create_site")
    @roles_required(Role.HR, Role.ADMIN)
    def create_site():
        try:
            site = container.site_service.create_site(json_body(), context=audit_context())
            return jsonify(to_json(site)), 201
        except ValidationError as e:
            return error(f"Invalid site data: {e}", 400)
        except PersistenceError:
            return error("Failed to create site", 500)
        except Exception:
            logger.exception("Failed to create site")
            return error("Failed to create site", 500)

    @app.route("/api/sites/<site_id>/posts", methods=["GET"], endpoint="list_site_posts")
    @login_required
    def list_site_posts(site_id: str):
        try:
            return jsonify(to_json_list(container.site_service.list_posts(site_id)))
        except Exception:
            logger.exception("Failed to fetch posts for site %s", site_id)
            return error("Failed to fetch posts", 500)

    @app.route("/api/posts", methods=["POST"], endpoint="create_post")
    @roles_required(Role.HR, Role.ADMIN)
    def create_post():
        try:
            post = container.site_service.create_post(json_body(), context=audit_context())
            return jsonify(to_json(post)), 201
        except ValidationError as e:
            return error(f"Invalid post data: {e}", 400)
        except PersistenceError:
            return error("Failed to create post", 500)
        except Exception:
            logger.exception("Failed to create post")
            return error("Failed to create post", 500)
