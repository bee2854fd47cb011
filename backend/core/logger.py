# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Centralised logging configuration.

Handlers, rotation and format live in etc/logging.conf and are applied once,
at import time, through the standard-library fileConfig loader.  Two things
are decided here rather than in the file:

* where the log file goes: ``<project>/log/app.log``, or the directory named
  by ``SECLOCK_LOG_DIR`` (containers mount a volume there);
* the level of the ``seclock`` tree, which ``main.create_app`` sets from
  ``Settings.log_level`` through :func:`set_level`.  The handlers pass
  everything, so the logger level alone decides what is written.

Import the ready-made logger anywhere:
    from core.logger import logger

Components ask for a child of it, so records name their area:
    log = get_logger("auth.store")      # → "seclock.auth.store"
"""

import configparser as _cp
import logging
import logging.config
import os
from pathlib import Path

# project root: backend/core/logger.py  →  ../../
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_LOGGING_CONF = _PROJECT_ROOT / "etc" / "logging.conf"
_LOG_DIR = Path(os.environ.get("SECLOCK_LOG_DIR") or _PROJECT_ROOT / "log")
_LOG_FILE = _LOG_DIR / "app.log"

_ROOT_NAME = "seclock"

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _apply_config() -> None:
    _LOG_DIR.mkdir(parents=True, exist_ok=True)
    # %(log_file)s is our placeholder; RawConfigParser leaves the format
    # strings (%(asctime)s …) alone.
    raw = _LOGGING_CONF.read_text(encoding="utf-8").replace("%(log_file)s", _LOG_FILE.as_posix())
    parser = _cp.RawConfigParser()
    parser.read_string(raw)
    logging.config.fileConfig(parser, disable_existing_loggers=False)


_apply_config()

logger = logging.getLogger(_ROOT_NAME)


def get_logger(area: str) -> logging.Logger:
    """Return the ``seclock.<area>`` child logger."""
    return logger.getChild(area)


def set_level(level: str) -> None:
    """Set the level of the whole ``seclock`` tree.  Raises ValueError on an unknown name."""
    name = level.upper()
    if name not in LEVELS:
        raise ValueError(f"Unknown log level: {level!r}")
    logger.setLevel(name)
