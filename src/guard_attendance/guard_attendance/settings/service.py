from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from ..audit.model import AuditContext
from ..audit.sink import AuditSink
from ..common.validators import require_object, require_positive_int, require_score
from ..core.exceptions import PersistenceError, ValidationError
from .model import SETTING_KEYS, SystemSettings
from .repository import SettingsRepository

logger = logging.getLogger(__name__)


class SettingsService:
    """Stored values override the defaults from the config module."""

    def __init__(self, settings: SettingsRepository, audit: AuditSink, *, defaults: SystemSettings | None = None):
        self._settings = settings
        self._audit = audit
        self._defaults = defaults or SystemSettings()

    @property
    def defaults(self) -> SystemSettings:
        return self._defaults

    def current(self) -> SystemSettings:
        try:
            stored = self._settings.load()
        except PersistenceError:
            logger.warning("Settings unavailable, using configured defaults")
            return self._defaults

        values = {}
        for field_name in SETTING_KEYS.values():
            raw = stored.get(field_name)
            if raw is None:
                continue
            try:
                values[field_name] = int(raw)
            except ValueError:
                logger.warning("Ignoring malformed setting %s=%r", field_name, raw)
        return replace(self._defaults, **values)

    def update(self, payload: Any, *, context: AuditContext) -> SystemSettings:
        with self._audit.audited(action="UPDATE_SETTINGS", resource="SystemSettings", context=context) as outcome:
            data = require_object(payload)
            outcome.details["settings"] = dict(data)

            unknown = set(data) - set(SETTING_KEYS)
            if unknown:
                raise ValidationError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
            if not data:
                raise ValidationError("No settings supplied")

            values: dict[str, str] = {}
            if "biometricMinScore" in data:
                values["biometric_min_score"] = str(require_score(data["biometricMinScore"], "biometricMinScore"))
            if "geofenceRadius" in data:
                values["geofence_radius"] = str(require_positive_int(data["geofenceRadius"], "geofenceRadius"))
            if "lateGraceMinutes" in data:
                grace = data["lateGraceMinutes"]
                if isinstance(grace, bool) or not isinstance(grace, int) or grace < 0:
                    raise ValidationError("lateGraceMinutes must be a non-negative integer")
                values["late_grace_minutes"] = str(grace)

            self._settings.save(values, updated_by=context.actor_id)
            logger.info("System settings updated by %s: %s", context.actor_id, values)
            return self.current()
