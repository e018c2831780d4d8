# ============================================
#   PairChat — Logging
#   file (always) + console (dev) + per-module levels
# ============================================

import sys
import logging
from logging.handlers import TimedRotatingFileHandler

from pairchat.config import (
    IS_PROD,
    LOG_FILE,
    LOG_LEVEL,
    LOG_MODULE_LEVELS,
)

ROOT_LOGGER_NAME = "pairchat"

_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def _root() -> logging.Logger:
    """
    Build the `pairchat` logger on first use.

    Every record goes to a rotating daily file (30 days kept). In dev the
    same records are mirrored to stderr so the socket traffic is visible
    while the server runs in a terminal.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if root.handlers:
        return root

    root.setLevel(_level(LOG_LEVEL))
    formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)

    file_handler = TimedRotatingFileHandler(
        LOG_FILE, when="midnight", backupCount=30, encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    if not IS_PROD:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(formatter)
        root.addHandler(console)

    root.propagate = False

    # e.g. PAIRCHAT_LOG_LEVELS="matchmaker=DEBUG,router=WARNING"
    for module, level in LOG_MODULE_LEVELS.items():
        root.getChild(module).setLevel(_level(level))

    return root


def get_logger(module: str) -> logging.Logger:
    """pairchat.<module>"""
    return _root().getChild(module)


def log_info(module: str, message: str):
    get_logger(module).info(message)


def log_warning(module: str, message: str):
    get_logger(module).warning(message)


def log_error(module: str, message: str):
    get_logger(module).error(message)


def log_exception(module: str, message: str):
    # inside except blocks only (adds the traceback)
    get_logger(module).exception(message)
