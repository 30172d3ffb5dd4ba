from __future__ import annotations

import sys

from loguru import logger

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | {message}"


def setup_logging(level: str = "INFO") -> int:
    """Route loguru output to stderr at the given level; returns the sink id."""
    logger.remove()
    return logger.add(sys.stderr, level=level, format=LOG_FORMAT, colorize=None)
