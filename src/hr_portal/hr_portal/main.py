from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, send_from_directory

from config import get_settings_module

from .common.http import register_error_handlers
from .common.logging import configure_logging
from .container import Container, build_container
from .core.constants import DEFAULT_MAX_IMAGE_BYTES, DEFAULT_SESSION_DAYS
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .attendance.controller import register as register_attendance
from .daily_works.controller import register as register_daily_works
from .devices.controller import register as register_devices
from .holidays.controller import register as register_holidays
from .org.controller import register as register_org
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the Flask app.

    Passing ``container`` skips the database bootstrap and uses the given
    services as-is (tests wire in-memory repositories this way).
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["UPLOAD_FOLDER"] = str(getattr(settings, "UPLOAD_FOLDER", "uploads"))
    app.config["MAX_IMAGE_BYTES"] = int(getattr(settings, "MAX_IMAGE_BYTES", DEFAULT_MAX_IMAGE_BYTES))
    app.permanent_session_lifetime = timedelta(days=int(getattr(settings, "SESSION_DAYS", DEFAULT_SESSION_DAYS)))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module, db_config.get("user"), db_config.get("host"),
            db_config.get("port", 3306), db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
            ensure_demo_users(db_config)

        container = build_container(
            db_config=db_config,
            upload_folder=app.config["UPLOAD_FOLDER"],
            max_image_bytes=app.config["MAX_IMAGE_BYTES"],
            online_minutes=int(getattr(settings, "DEVICE_ONLINE_MINUTES", 5)),
            retention_days=int(getattr(settings, "INACTIVE_DEVICE_RETENTION_DAYS", 30)),
        )

    app.extensions["hr_portal"] = container
    register_error_handlers(app)

    @app.route("/uploads/<path:filename>", methods=["GET"], endpoint="uploads")
    def uploads(filename: str):
        return send_from_directory(container.profile_image_service.folder.parent.resolve(), filename)

    register_users(app, container)
    register_devices(app, container)
    register_org(app, container)
    register_holidays(app, container)
    register_attendance(app, container)
    register_daily_works(app, container)

    return app
