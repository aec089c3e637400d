"""Logger factory: one stream handler on the root logger, level from env."""

from __future__ import annotations

import logging
import os
from typing import Final

LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

_configured = False


def _level_from_env() -> int:
    name = os.getenv("LESBOT_LOG_LEVEL") or os.getenv("LOG_LEVEL") or "INFO"
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _configure_root(level: int) -> None:
    global _configured

    root = logging.getLogger()
    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)
        _configured = True
    root.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Module logger; the first call installs the shared stream handler."""
    level = _level_from_env()
    _configure_root(level)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger
