"""
Logging configuration for the bot's console output.

Usage:
    from pair_arbitrage import logging_config
    logging_config.setup()
"""

import logging
import sys

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-7s | %(message)s"
TIME_FORMAT = "%H:%M:%S"


def setup(level=logging.INFO):
    """
    Configure the root logger for readable per-cycle output.

    - Short timestamps (HH:MM:SS)
    - Quiets HTTP provider chatter from web3 and urllib3
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=TIME_FORMAT))
    root.addHandler(console)

    logging.getLogger("web3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    # Module loggers created before setup() carry their own handler
    for name, existing in logging.root.manager.loggerDict.items():
        if name.startswith("pair_arbitrage") and isinstance(existing, logging.Logger):
            existing.handlers.clear()
            existing.setLevel(logging.NOTSET)

    logging.getLogger("pair_arbitrage").setLevel(level)
