"""Logging setup shared by the query client and the ``promq`` CLI."""

import logging
import sys
from typing import Any

from .settings import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once; later calls only adjust the level.

    Records go to stderr so that CLI output on stdout stays machine readable.
    """

    resolved = level or get_settings().log_level
    logging.basicConfig(level=resolved, format=LOG_FORMAT, stream=sys.stderr)
    if level is not None:
        logging.getLogger().setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Helper for retrieving configured loggers."""

    configure_logging()
    return logging.getLogger(name)


def log_structured(
    logger: logging.Logger, message: str, *, level: int = logging.INFO, **context: Any
) -> None:
    """Log ``message`` followed by ``key=value`` pairs of context."""

    extras = " ".join(f"{key}={value}" for key, value in context.items())
    logger.log(level, "%s %s", message, extras)
