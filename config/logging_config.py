"""
Centralized logging configuration.

All loggers hang off the ``translator`` package logger, which owns a console
handler and a rotating file under ``settings.logs_dir``. Modules get theirs
through get_logger(__name__).
"""
import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from .constants import (
    LOG_LEVEL, LOG_FORMAT, LOG_FILE_NAME,
    LOG_MAX_SIZE_MB, LOG_BACKUP_COUNT
)

PACKAGE_LOGGER = 'translator'


def configure_logging(logs_dir: Optional[Path] = None, level: str = LOG_LEVEL) -> logging.Logger:
    """
    Attach console and file handlers to the package logger.

    Calling it again replaces the handlers, so the log file can be moved
    once a different logs directory is configured.

    Args:
        logs_dir: Directory for translator.log (default: settings.logs_dir)
        level: Logger level name

    Returns:
        The package logger.
    """
    if logs_dir is None:
        from .settings import settings
        logs_dir = settings.logs_dir

    log_path = Path(logs_dir) / LOG_FILE_NAME
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(getattr(logging, level))

    formatter = logging.Formatter(LOG_FORMAT)

    # Console handler - INFO level
    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(formatter)
    root.addHandler(console)

    # File handler with rotation - DEBUG level
    file_handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=LOG_MAX_SIZE_MB * 1024 * 1024,
        backupCount=LOG_BACKUP_COUNT,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    return root


def get_logger(name: str = None) -> logging.Logger:
    """
    Logger for a module, configuring the package logger on first use.

    Usage:
        from config.logging_config import get_logger
        logger = get_logger(__name__)
    """
    root = logging.getLogger(PACKAGE_LOGGER)
    if not root.handlers:
        configure_logging()
    return root.getChild(name) if name else root
