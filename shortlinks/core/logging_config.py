"""Logging configuration for the short links service."""

import logging
import sys


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure the package logger.

    Module loggers (``logging.getLogger(__name__)``) and the request logger
    of the HTTP middleware (``shortlinks.access``) live under the
    ``shortlinks`` namespace and propagate here.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        The configured package logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    logger = logging.getLogger("shortlinks")
    logger.setLevel(numeric_level)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False
    return logger
