"""
Logging setup for storygraph.

The library itself only creates module loggers (``logging.getLogger(__name__)``).
Hosts that want readable output call ``configure_logging`` once at startup:

    from storygraph.utils.log import configure_logging

    configure_logging("DEBUG")
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from storygraph.config import normalize_log_level, settings

PACKAGE_LOGGER = "storygraph"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_MARKER = "_storygraph_handler"


def configure_logging(level: str | None = None, log_file: str | None = None) -> logging.Logger:
    """
    Attach a console handler (and optionally a file handler) to the package logger.

    Calling it again replaces the handlers installed by a previous call, so it is
    safe to use from tests and reloadable entry points. The root logger is left alone.
    """
    level_name = normalize_log_level(level or settings.log_level)
    numeric_level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(numeric_level)
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    setattr(console_handler, _HANDLER_MARKER, True)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        setattr(file_handler, _HANDLER_MARKER, True)
        logger.addHandler(file_handler)

    logger.debug("logging configured level=%s file=%s", level_name, log_file)
    return logger
