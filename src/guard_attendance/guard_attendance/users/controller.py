from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, jsonify, session

from ..common.serialization import to_json
from ..common.web import current_user_id, error, json_body
from ..container import Container
from ..core.exceptions import AuthenticationError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)

_PRIVATE = ("password_hash",)


def register(app: Flask, container: Container) -> None:
    app.permanent_session_lifetime = timedelta(days=container.session_days)

    @app.route("/api/register", methods=["POST"], endpoint="register_user")
    def register_user():
        data = json_body()
        if not isinstance(data, dict):
            return error("Request body must be a JSON object", 400)
        try:
            user = container.auth_service.register(
                username=data.get("username"),
                password=data.get("password"),
                email=data.get("email"),
            )
            return jsonify(to_json(user, exclude=_PRIVATE)), 201
        except ValidationError as e:
            return error(str(e), 400)
        except PersistenceError:
            return error("Registration failed", 500)
        except Exception:
            logger.exception("Registration failed")
            return error("Registration failed", 500)

    @app.route("/api/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        if not isinstance(data, dict):
            data = {}
        try:
            s_user = container.auth_service.authenticate(data.get("username", ""), data.get("password", ""))
        except AuthenticationError as e:
            return error(str(e), 401)
        except PersistenceError:
            return error("Login failed", 500)
        except Exception:
            logger.exception("Login failed")
            return error("Login failed", 500)

        session.clear()
        session.permanent = True
        session["user_id"] = s_user.user_id
        session["username"] = s_user.username
        session["role"] = s_user.role.value
        logger.info("User %s logged in", s_user.username)
        return jsonify({"id": s_user.user_id, "username": s_user.username, "role": s_user.role.value})

    @app.route("/api/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"ok": True})

    @app.route("/api/user", methods=["GET"], endpoint="current_user")
    def current_user():
        user_id = current_user_id()
        if not user_id:
            return error("Not authenticated", 401)
        try:
            user = container.auth_service.get_user(user_id)
        except Exception:
            logger.exception("Failed to load current user")
            return error("Failed to fetch user", 500)
        if not user:
            session.clear()
            return error("Not authenticated", 401)
        return jsonify(to_json(user, exclude=_PRIVATE))
