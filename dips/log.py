"""Centralized logger configuration.

Usage:
    from dips.log import get_logger
    logger = get_logger(__name__)

Records go to a file because the terminal belongs to the TUI while it runs.
"""

from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_ROOT_NAME = "dips"


def setup_logging(level: str, log_path: Path | None) -> None:
    """Install a single handler on the package logger.

    Calling this again replaces the previous handler, so tests and repeated
    CLI invocations do not stack duplicate outputs.
    """
    root = logging.getLogger(_ROOT_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    if log_path is None:
        handler: logging.Handler = logging.NullHandler()
    else:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
    root.propagate = False


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
