import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "guard_attendance"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Defaults for the verification policy; admins override them in system_settings
BIOMETRIC_THRESHOLD = int(os.getenv("BIOMETRIC_THRESHOLD", "85"))
DEFAULT_GEOFENCE_RADIUS = int(os.getenv("DEFAULT_GEOFENCE_RADIUS", "100"))
LATE_GRACE_MINUTES = int(os.getenv("LATE_GRACE_MINUTES", "5"))

NOTIFIER_HISTORY = int(os.getenv("NOTIFIER_HISTORY", "50"))
NOTIFIER_QUEUE = int(os.getenv("NOTIFIER_QUEUE", "100"))
NOTIFIER_SEND_TIMEOUT = float(os.getenv("NOTIFIER_SEND_TIMEOUT", "5"))
SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo site/posts/users on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
