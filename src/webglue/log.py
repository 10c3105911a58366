from __future__ import annotations

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def get_log_level(level: str) -> int:
    """Convert a level name (case-insensitive) to a logging constant; unknown names mean INFO."""
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logging(log_level: Optional[str] = None) -> None:
    """Configure the root logger for command-line use.

    The level comes from the argument, else the LOG_LEVEL environment variable, else INFO.
    Existing root handlers are replaced so repeated calls do not duplicate output.
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO")

    logger = logging.getLogger()
    logger.setLevel(get_log_level(log_level))
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)

    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(max(logging.WARNING, logger.level))
    logging.debug(f"Logging configured with level: {log_level}")
