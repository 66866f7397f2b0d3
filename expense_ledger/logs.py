"""
logs.py - logging setup shared by the tracker, storage and both UIs.

All modules call get_logger(__name__); records propagate to the package
logger, which gets a single stream handler the first time it is requested.
"""

import logging
import os

PACKAGE_LOGGER = "expense_ledger"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def _level_from_env(default: int = logging.INFO) -> int:
    name = (os.getenv("EXPENSE_LEDGER_LOG_LEVEL") or "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def get_logger(name: str) -> logging.Logger:
    # ensure a logger is available
    root = logging.getLogger(PACKAGE_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(_level_from_env())
    return logging.getLogger(name)


def set_level(level: int) -> None:
    """Change the package log level (the CLI quiets INFO records by default)."""
    get_logger(PACKAGE_LOGGER).setLevel(level)
