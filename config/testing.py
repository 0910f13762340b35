import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "guard_attendance_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

BIOMETRIC_THRESHOLD = 85
DEFAULT_GEOFENCE_RADIUS = 100
LATE_GRACE_MINUTES = 5

NOTIFIER_HISTORY = 50
NOTIFIER_QUEUE = 100
NOTIFIER_SEND_TIMEOUT = 1.0
SESSION_DAYS = 7

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
