"""
Logging configuration for Prompt Workbench.

Modules log through ``logging.getLogger(__name__)``; applications call
``setup_logging`` once at startup to attach a handler to the package logger.
"""

import logging
import sys


LOGGER_NAME = "prompt_workbench"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "WARNING", stream=None) -> logging.Logger:
    """
    Configure the package logger.

    Calling it again only updates the level; no duplicate handlers are added.

    Args:
        level: Logging level name
        stream: Output stream (defaults to stderr)

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())

    if not any(getattr(h, "_prompt_workbench", False) for h in logger.handlers):
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        handler._prompt_workbench = True
        logger.addHandler(handler)

    return logger
