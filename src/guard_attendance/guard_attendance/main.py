from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .audit.controller import register as register_audit
from .container import Container, build_container
from .core.constants import (
    DEFAULT_BIOMETRIC_THRESHOLD,
    DEFAULT_GEOFENCE_RADIUS_M,
    DEFAULT_LATE_GRACE_MINUTES,
    DEFAULT_NOTIFIER_HISTORY,
    DEFAULT_NOTIFIER_QUEUE,
    DEFAULT_NOTIFIER_SEND_TIMEOUT,
    DEFAULT_SESSION_DAYS,
)
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .exceptions.controller import register as register_exceptions
from .guards.controller import register as register_guards
from .notifier.controller import register as register_notifier
from .settings.controller import register as register_settings
from .settings.model import SystemSettings
from .shifts.controller import register as register_shifts
from .sites.controller import register as register_sites
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    Pass a prepared container (e.g. in-memory repositories) to skip the
    database bootstrap entirely.
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
            ensure_demo_users(db_config)
            logger.info("Demo seed ready")

        container = build_container(
            db_config=db_config,
            defaults=SystemSettings(
                biometric_min_score=int(getattr(settings, "BIOMETRIC_THRESHOLD", DEFAULT_BIOMETRIC_THRESHOLD)),
                geofence_radius=int(getattr(settings, "DEFAULT_GEOFENCE_RADIUS", DEFAULT_GEOFENCE_RADIUS_M)),
                late_grace_minutes=int(getattr(settings, "LATE_GRACE_MINUTES", DEFAULT_LATE_GRACE_MINUTES)),
            ),
            notifier_history=int(getattr(settings, "NOTIFIER_HISTORY", DEFAULT_NOTIFIER_HISTORY)),
            notifier_queue=int(getattr(settings, "NOTIFIER_QUEUE", DEFAULT_NOTIFIER_QUEUE)),
            notifier_send_timeout=float(getattr(settings, "NOTIFIER_SEND_TIMEOUT", DEFAULT_NOTIFIER_SEND_TIMEOUT)),
            session_days=int(getattr(settings, "SESSION_DAYS", DEFAULT_SESSION_DAYS)),
        )

    app.extensions["guard_attendance"] = container

    register_users(app, container)
    register_guards(app, container)
    register_sites(app, container)
    register_shifts(app, container)
    register_attendance(app, container)
    register_exceptions(app, container)
    register_audit(app, container)
    register_settings(app, container)
    register_notifier(app, container)

    return app
