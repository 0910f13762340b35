"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_BIOMETRIC_THRESHOLD = 85
DEFAULT_GEOFENCE_RADIUS_M = 100
DEFAULT_LATE_GRACE_MINUTES = 5
DEFAULT_AUDIT_LIMIT = 100
MAX_AUDIT_LIMIT = 1000
DEFAULT_NOTIFIER_HISTORY = 50
DEFAULT_NOTIFIER_QUEUE = 100
DEFAULT_NOTIFIER_SEND_TIMEOUT = 5.0

MIN_SCORE = 0
MAX_SCORE = 100

EARTH_RADIUS_M = 6_371_000.0

OPERATOR_LOGGER = "guard_attendance.operator"
