from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Sequence

from ..audit.model import AuditContext
from ..audit.sink import AuditSink
from ..common.validators import new_id, optional_str, optional_uuid, require_non_empty, require_object, require_uuid
from ..core.exceptions import NotFoundError, ValidationError
from ..database.mysql_base import DuplicateKeyError, ForeignKeyError
from ..sites.repository import SiteRepository
from ..users.repository import UserRepository
from .model import Guard
from .repository import GuardRepository


class GuardService:
    """Use case: HR manages guard profiles. Guards are deactivated, never deleted."""

    def __init__(self, guards: GuardRepository, users: UserRepository, sites: SiteRepository, audit: AuditSink):
        self._guards = guards
        self._users = users
        self._sites = sites
        self._audit = audit

    def list_guards(self) -> Sequence[Guard]:
        return self._guards.list_all()

    def get_guard(self, guard_id: str) -> Guard:
        guard = self._guards.get_by_id(guard_id)
        if not guard:
            raise NotFoundError("Guard not found")
        return guard

    def get_profile_for_user(self, user_id: str) -> Guard:
        guard = self._guards.get_by_user_id(user_id)
        if not guard:
            raise NotFoundError("Guard profile not found")
        return guard

    def create_guard(self, payload: Any, *, context: AuditContext) -> Guard:
        with self._audit.audited(action="CREATE_GUARD", resource="Guard", context=context) as outcome:
            data = require_object(payload)
            # biometric references are never copied into the audit trail
            outcome.details["guardData"] = {k: v for k, v in data.items() if k != "biometricData"}

            user_id = require_uuid(data.get("userId"), "userId")
            if not self._users.get_by_id(user_id):
                raise ValidationError("userId does not reference an existing user")
            if self._guards.get_by_user_id(user_id):
                raise ValidationError("User already has a guard profile")

            employee_id = require_non_empty(data.get("employeeId"), "employeeId")
            if self._guards.get_by_employee_id(employee_id):
                raise ValidationError("employeeId already exists")

            site_id = optional_uuid(data.get("siteId"), "siteId")
            if site_id and not self._sites.get_site(site_id):
                raise ValidationError("siteId does not reference an existing site")

            is_active = data.get("isActive", True)
            if not isinstance(is_active, bool):
                raise ValidationError("isActive must be a boolean")

            guard = Guard(
                id=new_id(),
                user_id=user_id,
                employee_id=employee_id,
                first_name=require_non_empty(data.get("firstName"), "firstName"),
                last_name=require_non_empty(data.get("lastName"), "lastName"),
                phone_number=optional_str(data.get("phoneNumber")),
                site_id=site_id,
                hourly_rate=_parse_rate(data.get("hourlyRate")),
                biometric_data=data.get("biometricData"),
                is_active=is_active,
            )
            try:
                created = self._guards.create(guard)
            except DuplicateKeyError:
                raise ValidationError("Guard profile already exists")
            except ForeignKeyError:
                raise ValidationError("Guard references a missing user or site")

            outcome.resource_id = created.id
            return created

    def deactivate(self, guard_id: str, *, context: AuditContext) -> Guard:
        with self._audit.audited(action="DEACTIVATE_GUARD", resource="Guard", context=context) as outcome:
            outcome.resource_id = guard_id
            guard = self.get_guard(guard_id)
            if guard.is_active:
                self._guards.set_active(guard_id, False)
            return self.get_guard(guard_id)


def _parse_rate(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError("hourlyRate must be a decimal amount")
    try:
        rate = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError("hourlyRate must be a decimal amount")
    if not rate.is_finite() or rate < 0:
        raise ValidationError("hourlyRate must be a non-negative amount")
    return rate.quantize(Decimal("0.01"))
