"""
Logging configuration
"""
import sys

from loguru import logger

from insight_cache.config import settings


def setup_logger(level: str | None = None, log_file: str | None = None):
    """Configure the loguru logger for the cache layer."""
    logger.remove()  # Remove default handler

    # Console logging
    logger.add(
        sys.stderr,
        colorize=True,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level or settings.log_level,
    )

    # Optional file logging
    log_file = log_file or settings.log_file
    if log_file:
        logger.add(
            log_file,
            rotation="00:00",
            retention="30 days",
            level="INFO",
        )

    return logger

