from __future__ import annotations

import logging
from dataclasses import dataclass

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import new_id, require_min_length, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, ValidationError
from ..database.mysql_base import DuplicateKeyError
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: str
    username: str
    role: Role


class AuthService:
    """Use case: authenticate and register accounts."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, username: str, password: str) -> SessionUser:
        user = self._users.get_by_username((username or "").strip())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid username or password")

        return SessionUser(user_id=user.id, username=user.username, role=user.role)

    def register(self, *, username: str, password: str, email: str, role: Role = Role.GUARD) -> User:
        """Self-service signup. Elevated roles are granted by an admin, never here."""

        username = require_non_empty(username, "username")
        email = require_non_empty(email, "email")
        require_min_length(password or "", "password", 6)
        if "@" not in email:
            raise ValidationError("email is invalid")
        if role != Role.GUARD:
            raise ValidationError("Only guard accounts can be self-registered")

        if self._users.get_by_username(username):
            raise ValidationError("Username already exists")

        try:
            user = self._users.create_user(
                user_id=new_id(),
                username=username,
                password_hash=generate_password_hash(password),
                email=email,
                role=role,
            )
        except DuplicateKeyError:
            raise ValidationError("Username already exists")

        logger.info("Registered user %s (%s)", user.username, user.role.value)
        return user

    def get_user(self, user_id: str) -> User | None:
        return self._users.get_by_id(user_id)
