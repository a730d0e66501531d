"""Logging setup for the CLI and the scheduler process.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached once by :func:`setup_logging` from an entry point.

Usage:
    from football_insights.utils import setup_logging

    setup_logging(level="DEBUG")
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

from ..config import get_settings

ROOT_LOGGER = "football_insights"

# Third-party loggers that are noisy at INFO
QUIET_LOGGERS = ("apscheduler", "urllib3")

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"

_console_handler: Optional[logging.Handler] = None
_file_handler: Optional[logging.Handler] = None


def log_file_path(log_dir: Path, when: Optional[datetime] = None) -> Path:
    """One log file per UTC day."""
    when = when or datetime.now(timezone.utc)
    return log_dir / f"football_insights_{when:%Y-%m-%d}.log"


def setup_logging(
    level: Optional[str] = None,
    log_to_file: Optional[bool] = None,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Attach console (and optionally file) handlers to the package logger.

    Safe to call repeatedly: handlers are created once, later calls only
    change the console level, so a ``--verbose`` flag still takes effect
    after an earlier default setup.

    Args:
        level: Console level (DEBUG, INFO, WARNING, ERROR). Defaults to settings.
        log_to_file: Also write DEBUG and above to a daily file. Defaults to settings.
        log_dir: Directory for log files. Defaults to settings.

    Returns:
        The ``football_insights`` package logger
    """
    global _console_handler, _file_handler

    settings = get_settings()
    level = (level or settings.log_level).upper()
    log_to_file = settings.log_to_file if log_to_file is None else log_to_file

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG)

    if _console_handler is None:
        _console_handler = RichHandler(show_path=False, rich_tracebacks=False, markup=False)
        _console_handler.setFormatter(logging.Formatter("%(name)s | %(message)s"))
        logger.addHandler(_console_handler)
    _console_handler.setLevel(getattr(logging, level))

    if log_to_file and _file_handler is None:
        directory = log_dir or settings.logs_dir
        directory.mkdir(parents=True, exist_ok=True)
        _file_handler = logging.FileHandler(log_file_path(directory), encoding="utf-8")
        _file_handler.setLevel(logging.DEBUG)
        _file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(_file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def reset_logging() -> None:
    """Detach and close the handlers added by :func:`setup_logging`."""
    global _console_handler, _file_handler

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in (_console_handler, _file_handler):
        if handler is not None:
            logger.removeHandler(handler)
            handler.close()
    _console_handler = None
    _file_handler = None
