"""Logging configuration using loguru."""
import sys

from loguru import logger


def setup_logging(level: str = "INFO", serialize: bool = False) -> None:
    """
    Configure the loguru logger for the slug engine.

    Args:
        level: Minimum log level
        serialize: Emit JSON records instead of formatted lines
    """
    # Remove default handler
    logger.remove()

    logger.add(
        sys.stderr,
        level=level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        serialize=serialize,
    )

    logger.debug("Logging configured (level={}, serialize={})", level, serialize)
