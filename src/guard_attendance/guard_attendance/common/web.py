"""Shared helpers for the JSON controllers."""

from __future__ import annotations

from functools import wraps

from flask import jsonify, request, session

from ..audit.model import AuditContext
from ..core.enums import Role


def error(message: str, status: int):
    return jsonify({"error": message}), status


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error("Not authenticated", 401)
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return error("Not authenticated", 401)
            if session.get("role") not in allowed:
                return error("Forbidden", 403)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def current_user_id() -> str | None:
    return session.get("user_id")


def current_role() -> Role | None:
    role = session.get("role")
    return Role(role) if role else None


def json_body() -> object:
    return request.get_json(silent=True)


def audit_context() -> AuditContext:
    return AuditContext(
        actor_id=current_user_id(),
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )
