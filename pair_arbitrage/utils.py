"""
Common helpers shared across the bot.

Logger construction and small formatting helpers used by the console report.
"""

import logging
from typing import Union

from .logging_config import CONSOLE_FORMAT, TIME_FORMAT


def get_logger(name: str, level: Union[str, int] = logging.INFO) -> logging.Logger:
    """
    Get a module logger.

    Before logging_config.setup() has installed the root console handler,
    the logger gets its own stderr handler in the same format, so messages
    from library use and tests are still readable.

    Args:
        name: Logger name (typically __name__)
        level: Level applied when the logger has none of its own

    Returns:
        The named logger
    """
    logger = logging.getLogger(name)

    if logger.level == logging.NOTSET:
        logger.setLevel(level)

    if not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=TIME_FORMAT))
        logger.addHandler(handler)

    return logger


def short_address(address: str) -> str:
    """Shorten a hex address for log lines (0x1234...abcd)."""
    if not address or len(address) <= 12:
        return address
    return f"{address[:6]}...{address[-4:]}"
