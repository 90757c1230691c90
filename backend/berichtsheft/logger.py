"""Logging setup shared by the API process and the CLI entry point."""

from __future__ import annotations

import logging
import sys
from logging.handlers import TimedRotatingFileHandler

from .config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "berichtsheft.log"


def setup_logging(config: Settings) -> logging.Logger:
    """Attach console and rotating file handlers to the package logger.

    Calling it twice replaces the handlers instead of stacking duplicates.
    """
    logger = logging.getLogger("berichtsheft")
    logger.setLevel(getattr(logging, config.log_level, logging.INFO))
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    file_handler = TimedRotatingFileHandler(
        config.log_dir / LOG_FILE_NAME,
        when="D",
        interval=config.log_rotation_days,
        backupCount=config.log_backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logger.propagate = False
    return logger
