from __future__ import annotations

import logging
import sys
from typing import Union

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """Configure root logging to stdout. Safe to call more than once."""

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(level=level, handlers=[handler], force=True)

    # mysql-connector is chatty at DEBUG
    logging.getLogger("mysql.connector").setLevel(max(level, logging.INFO))
