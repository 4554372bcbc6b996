"""Loguru sink setup for harness runs."""

import sys

from loguru import logger

SHORT_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
)
VERBOSE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logging(level: str = "INFO", verbose: bool = False) -> int:
    """Replace loguru's default sink with a stderr sink at ``level``.

    Returns the id of the new sink.
    """
    logger.remove()
    return logger.add(
        sys.stderr,
        level="DEBUG" if verbose else level.upper(),
        format=VERBOSE_FORMAT if verbose else SHORT_FORMAT,
    )
