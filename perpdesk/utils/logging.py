"""Loguru sink configuration for command-line entry points."""

import sys

from loguru import logger

from .env import get_log_level


def configure_logging(level: str | None = None) -> None:
    """Replace loguru's default sink with a stderr sink at the given level.

    When `level` is omitted, `PERPDESK_LOG_LEVEL` is used (default INFO).
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=level or get_log_level(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
        ),
    )
