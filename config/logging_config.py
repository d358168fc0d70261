"""
Centralized logging configuration.
Every module gets its logger from here.

Level and log file come from Settings (LOG_LEVEL, LOG_FILE, DATA_DIR); the
rotating file lives under <data_dir>/logs/ next to the bundled ffmpeg.
"""
import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from .constants import LOG_FORMAT, LOG_MAX_SIZE_MB, LOG_BACKUP_COUNT
from .settings import settings


def setup_logger(name: str = None, log_file: Optional[Path] = None) -> logging.Logger:
    """
    Get or create a configured logger.

    Usage:
        from config.logging_config import setup_logger
        logger = setup_logger(__name__)
        logger.info("Message here")

    Args:
        name: Logger name. If None, uses 'subtitle_translator'.
        log_file: Rotating log file. Defaults to settings.log_path.

    Returns:
        Configured logging.Logger instance.
    """
    logger = logging.getLogger(name or 'subtitle_translator')

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    # Console handler - INFO level
    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console)

    # File handler with rotation - DEBUG level
    log_path = Path(log_file or settings.log_path)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(f"File logging disabled, cannot create {log_path.parent}: {e}")
        return logger

    file_handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=LOG_MAX_SIZE_MB * 1024 * 1024,
        backupCount=LOG_BACKUP_COUNT,
        encoding='utf-8',
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)

    return logger


def get_logger(name: str = None) -> logging.Logger:
    """
    Alias for setup_logger for convenience.

    Usage:
        from config.logging_config import get_logger
        logger = get_logger(__name__)
    """
    return setup_logger(name)


# Usage: from config.logging_config import logger
logger = setup_logger('subtitle_translator')
