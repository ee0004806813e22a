from __future__ import annotations

import importlib
import logging
from typing import Any, Optional

from dotenv import load_dotenv
from flask import Flask

from .common.clock import Clock
from .common.http import register_error_handlers
from .config import get_settings_module
from .container import build_container
from .database.bootstrap import apply_schema, list_tables
from .logging_config import setup_logging

from .employees.controller import register as register_employees
from .invites.controller import register as register_invites
from .ratings.controller import register as register_ratings
from .shifts.controller import register as register_shifts
from .stats.controller import register as register_stats
from .violations.controller import register as register_violations

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Any] = None, *, clock: Optional[Clock] = None) -> Flask:
    load_dotenv(override=False)
    if settings is None:
        settings = importlib.import_module(get_settings_module())

    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    app = Flask(__name__)
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))

    backend = str(getattr(settings, "STORAGE_BACKEND", "mysql")).lower()
    if backend == "mysql" and bool(getattr(settings, "AUTO_INIT_DB", False)):
        db_config = getattr(settings, "DB_CONFIG")
        apply_schema(db_config)
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))

    container = build_container(settings, clock=clock)
    app.extensions["shift_tracker"] = container
    if bool(getattr(settings, "SCHEDULER_ENABLED", False)):
        container.scheduler.start()

    register_error_handlers(app)
    register_employees(app, container)
    register_shifts(app, container)
    register_violations(app, container)
    register_ratings(app, container)
    register_invites(app, container)
    register_stats(app, container)

    return app
