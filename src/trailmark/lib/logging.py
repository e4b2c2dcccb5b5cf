"""Logging configuration for trailmark.

Everything under the ``trailmark`` logger goes to a timestamped file in the
data directory; the console only shows what the verbosity flags allow.
HTTP traffic from the geolocation lookup is logged to the file as well.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from trailmark.config import Config

logger = logging.getLogger("trailmark")

CONSOLE_FORMAT = "%(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers whose records are only wanted in the log file
FILE_ONLY_LOGGERS = ("urllib3",)


def log_file_path(log_dir: Path, now: datetime | None = None) -> Path:
    """Name of the log file for a run started at ``now``."""
    stamp = (now or datetime.now()).strftime("%Y%m%dT%H%M%S")
    return log_dir / f"trailmark-{stamp}.log"


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def _file_handler(path: Path, level: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
    return handler


def setup_logging(
    config: Config | None = None,
    log_dir: Path | None = None,
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    quiet: bool = False,
) -> logging.Logger:
    """Configure the trailmark logger for one CLI run.

    Args:
        config: Application config; logs go to ``<data dir>/logs``.
        log_dir: Explicit log directory, overriding the config.
        console_level: Console threshold.
        file_level: File threshold.
        quiet: Raise the console threshold to WARNING.

    Returns:
        The configured ``trailmark`` logger.
    """
    if log_dir is None:
        log_dir = config.data.directory / "logs" if config is not None else Path("logs")
    log_file = log_file_path(log_dir)

    console = _console_handler(max(console_level, logging.WARNING) if quiet else console_level)
    file_handler = _file_handler(log_file, file_level)

    for old in list(logger.handlers):
        logger.removeHandler(old)
        for name in FILE_ONLY_LOGGERS:
            logging.getLogger(name).removeHandler(old)
        old.close()

    logger.setLevel(logging.DEBUG)
    logger.addHandler(console)
    logger.addHandler(file_handler)

    for name in FILE_ONLY_LOGGERS:
        extra = logging.getLogger(name)
        extra.setLevel(logging.DEBUG)
        extra.addHandler(file_handler)

    logger.debug("Logging initialized. Log file: %s", log_file)
    return logger
