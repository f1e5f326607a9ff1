"""Structured logging with loguru."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger as _loguru_logger

_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level:<8}</level> | "
    "<cyan>{extra[name]}</cyan> — <level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {extra[name]}:{function}:{line} — {message}"

# Remove default sink and reconfigure
_loguru_logger.remove()
_loguru_logger.configure(extra={"name": "supportvector"})
_console_sink = _loguru_logger.add(sys.stderr, level="INFO", format=_CONSOLE_FORMAT, colorize=True)


def get_logger(name: str = __name__):
    """Return a module-scoped loguru logger."""
    return _loguru_logger.bind(name=name)


def set_level(level: str) -> None:
    """Swap the console sink for one filtering at *level*."""
    global _console_sink
    _loguru_logger.remove(_console_sink)
    _console_sink = _loguru_logger.add(
        sys.stderr, level=level.upper(), format=_CONSOLE_FORMAT, colorize=True
    )


def add_file_sink(path: Path | str) -> int:
    """Add a rotating DEBUG file sink and return its handler id."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return _loguru_logger.add(
        path,
        rotation="10 MB",
        retention="30 days",
        level="DEBUG",
        format=_FILE_FORMAT,
    )
