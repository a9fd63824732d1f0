"""Structured logging for newsfeed events (post, subscribe, deliver)."""

import logging
import sys
from typing import Optional

from newsfeed.config import get_settings

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Return the logger for a notifier or subscriber, with one stdout handler.
    Without an explicit level the NEWSFEED_LOG_LEVEL setting applies on first use;
    an explicit level always wins.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        if level is None:
            level = get_settings().log_level_value
    if level is not None:
        logger.setLevel(level)
    return logger
