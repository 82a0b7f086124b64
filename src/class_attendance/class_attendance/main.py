from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.logging import configure_logging
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables, seed_demo_class
from .sessions.controller import register as register_sessions

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        store_backend = str(getattr(settings, "STORE_BACKEND", "mysql")).lower()
        db_config = getattr(settings, "DB_CONFIG", None)
        logger.info("settings=%s store=%s", settings_module, store_backend)

        if store_backend == "mysql" and bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
            if bool(getattr(settings, "AUTO_SEED_DB", False)):
                seed_demo_class(db_config)
                logger.info("demo class seeded")

        container = build_container(
            db_config=db_config,
            store_backend=store_backend,
            window_minutes=getattr(settings, "SESSION_WINDOW_MINUTES", 15),
            late_threshold_minutes=getattr(settings, "LATE_THRESHOLD_MINUTES", 15),
        )

    app.extensions["class_attendance"] = container

    register_sessions(app, container)
    register_attendance(app, container)

    return app
