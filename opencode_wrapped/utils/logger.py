"""Logging setup using loguru."""

import os
import sys

from loguru import logger

DEBUG_ENV_VAR = "OPENCODE_WRAPPED_DEBUG"
FMT = "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}"


def setup_logging(verbose: bool = False) -> None:
    """Send log records to stderr.

    WARNING and above by default; DEBUG when ``verbose`` is set or
    ``OPENCODE_WRAPPED_DEBUG`` is 1/true.
    """
    debug = verbose or os.getenv(DEBUG_ENV_VAR, "").lower() in ("1", "true")
    level = "DEBUG" if debug else "WARNING"
    logger.remove()
    logger.add(sys.stderr, format=FMT, level=level, colorize=True, diagnose=False)
