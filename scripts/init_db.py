from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv

from shift_tracker.config import get_settings_module
from shift_tracker.database.bootstrap import apply_schema, list_tables
from shift_tracker.logging_config import setup_logging

logger = logging.getLogger("init_db")


def main() -> None:
    load_dotenv(override=False)
    setup_logging()
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config)
    tables = list_tables(db_config)
    logger.info(
        "Applied schema.sql -> %s@%s:%s/%s (tables=%d)",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
        len(tables),
    )


if __name__ == "__main__":
    main()
