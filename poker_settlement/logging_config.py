"""
Logging setup.

Every module logs through a named logger under the
``poker_settlement`` tree, e.g. ``poker_settlement.services.settlement``.
configure_logging() attaches one stream handler to the top of that
tree so the level can be tuned from LOG_LEVEL without touching
third-party loggers.
"""

import logging

from poker_settlement.config import get_settings

LOGGER_NAME = "poker_settlement"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> logging.Logger:
    """Configure the package logger once; repeated calls only adjust the level."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level or get_settings().LOG_LEVEL)

    if not any(getattr(h, "_poker_settlement", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._poker_settlement = True
        logger.addHandler(handler)

    return logger
