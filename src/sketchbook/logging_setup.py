"""
Logging setup shared by the headless runner and the web app.

Configures the root logger once from a ``LoggingConfig``: a console handler
always, plus a rotating file handler when ``log_file`` is set.
"""
from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from .config import LoggingConfig


def setup_logging(config: LoggingConfig) -> None:
    """Configure the root logger from ``config``, replacing existing handlers."""
    level = config.level.upper()
    logger = logging.getLogger()
    logger.setLevel(level)

    # Clear existing handlers to avoid duplicated lines on re-init
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(config.format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=config.max_bytes, backupCount=config.backup_count
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logging.getLogger(__name__).debug("Logging initialised at %s (file=%s)", level, config.log_file)
