"""Logging configuration for layout-sync.

Everything the sync does is logged under the ``layout_sync`` logger. The
request lines httpx emits, and SQLAlchemy's engine chatter, are only let
through in verbose mode.
"""

import logging
import sys
from pathlib import Path


LOGGER_NAME = "layout_sync"

# Libraries whose own loggers follow our verbosity
LIBRARY_LOGGERS = ("httpx", "sqlalchemy.engine")


def setup_logging(
    verbosity: int = 0,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure the layout_sync logger and the libraries it drives.

    Args:
        verbosity: -1 shows only warnings, 0 shows sync progress, 1 adds
            per-entity reconcile decisions and the HTTP request lines
        log_file: Optional path that receives every record at DEBUG,
            with timestamps and thread names

    Returns:
        The layout_sync logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    if verbosity < 0:
        console_handler.setLevel(logging.WARNING)
    elif verbosity > 0:
        console_handler.setLevel(logging.DEBUG)
    else:
        console_handler.setLevel(logging.INFO)

    # Fetch and reconcile run on worker threads; verbose output says which
    if verbosity > 0:
        console_fmt = logging.Formatter("%(levelname)s [%(threadName)s]: %(message)s")
    else:
        console_fmt = logging.Formatter("%(message)s")
    console_handler.setFormatter(console_fmt)
    logger.addHandler(console_handler)

    handlers: list[logging.Handler] = [console_handler]
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s [%(name)s:%(threadName)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(file_handler)
        handlers.append(file_handler)

    for name in LIBRARY_LOGGERS:
        library_logger = logging.getLogger(name)
        library_logger.handlers.clear()
        if verbosity > 0:
            library_logger.setLevel(logging.INFO)
            for handler in handlers:
                library_logger.addHandler(handler)
        else:
            library_logger.setLevel(logging.WARNING)

    return logger


def get_logger() -> logging.Logger:
    """Logger shared by every layout-sync module."""
    return logging.getLogger(LOGGER_NAME)
