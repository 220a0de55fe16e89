from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.http import register_error_handlers
from .container import Container, build_container
from .core.constants import DEFAULT_SESSION_DAYS
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .database.connection import DBConfig
from .groups.controller import register as register_groups
from .hours.controller import register as register_hours
from .shifts.controller import register as register_shifts
from .users.controller import register as register_users

logger = logging.getLogger("volunteer_tracker")

DATABASE_DIR = Path(__file__).resolve().parents[2] / "database"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _bootstrap_database(settings, db_config: Mapping[str, Any]) -> None:
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
        logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
        ensure_demo_users(db_config)
        logger.info("demo seed ready")


def create_app(container: Optional[Container] = None, **overrides: Any) -> Flask:
    """Application factory.

    Passing a prebuilt ``container`` skips database bootstrap entirely (tests
    wire in-memory repositories this way). ``overrides`` are applied to
    ``app.config`` last.
    """

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(
        days=int(getattr(settings, "SESSION_DAYS", DEFAULT_SESSION_DAYS))
    )
    app.config.update(overrides)

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info("settings=%s db=%s", settings_module, DBConfig.from_mapping(db_config).describe())
        _bootstrap_database(settings, db_config)
        container = build_container(
            db_config=db_config,
            notifications_enabled=bool(getattr(settings, "NOTIFICATIONS_ENABLED", True)),
        )

    app.extensions["volunteer_tracker"] = container

    register_error_handlers(app)
    register_users(app, container)
    register_shifts(app, container)
    register_groups(app, container)
    register_attendance(app, container)
    register_hours(app, container)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"success": True, "status": "ok"})

    return app
