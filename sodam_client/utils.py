"""Utility helpers for the Sodam client.

Contains the logging setup used by ``main.py`` and the diagnostic scripts.
Every handler it installs masks bearer tokens, so a stray header dump or
exception message never writes a credential to disk or the terminal.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path

BEARER_PATTERN = re.compile(r"(Bearer\s+)[^\s'\",}]+")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class RedactBearerFilter(logging.Filter):
    """Replace the token after ``Bearer`` with ``***`` in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = BEARER_PATTERN.sub(r"\1***", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)
    handler.addFilter(RedactBearerFilter())
    return handler


def level_from_name(name: str | None, default: int = logging.INFO) -> int:
    """Map a ``LOG_LEVEL`` value such as ``"debug"`` to a logging level."""
    if not name:
        return default
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else default


def configure_logging(log_file: str = "sodam_client.log", level: int = logging.INFO, truncate: bool = False) -> None:
    """Send the request/refresh trail to ``log_file`` and WARNING+ to the console.

    If `truncate` is True the previous run's log is emptied first.
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    mode = "w" if truncate else "a"

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)

    root.addHandler(_handler(logging.FileHandler(log_path, mode=mode, encoding="utf-8"), level))
    # Console: refresh failures and expired sessions only
    root.addHandler(_handler(logging.StreamHandler(), logging.WARNING))
