"""
Logging configuration
"""

import logging
import sys
from typing import Optional
from core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Per-request transport logs, too noisy at a sub-second poll interval
TRANSPORT_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: Optional[str] = None):
    """
    Configure logging for a process driving polling sources.

    Args:
        level: Root log level name; defaults to ``settings.LOG_LEVEL``.
            Unknown names fall back to INFO.
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    for name in TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {logging.getLevelName(log_level)} level ({settings.ENVIRONMENT})")
