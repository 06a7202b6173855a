from __future__ import annotations

import importlib
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .container import build_container
from .core.logging import configure_logging, get_logger
from .database.bootstrap import apply_schema, list_tables
from .scheduler.controller import register as register_scheduler

logger = get_logger(__name__)


def _should_start_scheduler(app: Flask, settings, start_scheduler: Optional[bool]) -> bool:
    if start_scheduler is not None:
        return start_scheduler
    if not bool(getattr(settings, "SCHEDULER_ENABLED", True)) or app.config["TESTING"]:
        return False
    # The debug reloader imports the app twice; only the child process schedules.
    return not app.config["DEBUG"] or os.environ.get("WERKZEUG_RUN_MAIN") == "true"


def create_app(start_scheduler: Optional[bool] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"), json=bool(getattr(settings, "LOG_JSON", False)))

    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["TRIGGER_TOKEN"] = getattr(settings, "TRIGGER_TOKEN", "")

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))

    container = build_container(db_config=db_config, settings=settings)
    app.extensions["absence_notifier"] = container

    register_scheduler(app, container)

    if _should_start_scheduler(app, settings, start_scheduler):
        container.absence_scheduler.start()
    else:
        logger.info("Absence scheduler not started")

    return app
