from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .academic_events.controller import register as register_academic_events
from .calendar.controller import register as register_calendar
from .container import build_container
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .holidays.controller import register as register_holidays
from .schedules.controller import register as register_schedules

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    # Helpful startup info to avoid "client connected but no tables" confusion.
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
        logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
        logger.info("demo seed ready")

    container = build_container(
        db_config=db_config,
        capability_overrides=getattr(settings, "CAPABILITY_OVERRIDES", None),
        fetch_workers=int(getattr(settings, "CALENDAR_FETCH_WORKERS", 4)),
        fetch_timeout=float(getattr(settings, "CALENDAR_FETCH_TIMEOUT", 10.0)),
    )
    register_app(app, container)
    return app


def register_app(app: Flask, container) -> Flask:
    app.extensions["campus_calendar"] = container

    register_calendar(app, container)
    register_schedules(app, container)
    register_holidays(app, container)
    register_academic_events(app, container)
    return app
