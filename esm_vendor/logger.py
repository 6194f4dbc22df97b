# === FILE: esm_vendor/logger.py ===
"""Logger of the **esm_vendor** package.

Library modules only do ``from esm_vendor.logger import logger``; handlers are
attached by the CLI through :func:`init_logging`.  Records go to stderr
because stdout carries command output (manifest JSON, URL listing).
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, List, Union

LOGGER_NAME: Final[str] = "esm_vendor"
_DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def init_logging(
    level: Union[int, str] = "WARNING",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
) -> logging.Logger:
    """Replace the handlers of the package logger.

    *log_file* adds a rotating file (5 MB x 3) next to the stderr stream.
    """
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        handlers.append(
            RotatingFileHandler(str(log_file), maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8")
        )
    formatter = logging.Formatter(log_format)

    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)
    lg.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        lg.addHandler(handler)
    lg.propagate = False
    return lg


logger: logging.Logger = logging.getLogger(LOGGER_NAME)

__all__ = ["logger", "init_logging", "LOGGER_NAME"]
