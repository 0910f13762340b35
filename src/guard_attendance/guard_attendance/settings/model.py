from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import DEFAULT_BIOMETRIC_THRESHOLD, DEFAULT_GEOFENCE_RADIUS_M, DEFAULT_LATE_GRACE_MINUTES

# API field -> system_settings.setting_key
SETTING_KEYS = {
    "biometricMinScore": "biometric_min_score",
    "geofenceRadius": "geofence_radius",
    "lateGraceMinutes": "late_grace_minutes",
}


@dataclass(frozen=True)
class SystemSettings:
    """Admin-editable verification policy."""

    biometric_min_score: int = DEFAULT_BIOMETRIC_THRESHOLD
    geofence_radius: int = DEFAULT_GEOFENCE_RADIUS_M
    late_grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES
