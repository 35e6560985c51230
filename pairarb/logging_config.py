"""
Logging configuration for cleaner output.

Usage:
    from pairarb import logging_config
    logging_config.setup()
"""

import logging
import sys

NOISY_LOGGERS = ("web3", "urllib3", "aiohttp", "asyncio")


def setup(level=logging.INFO):
    """
    Configure logging for cleaner, more readable output.

    - Short timestamp format (HH:MM:SS)
    - web3/urllib3/aiohttp request chatter capped at WARNING
    """

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    # Minimal format: time + level + message
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(message)s", datefmt="%H:%M:%S"
    )
    console.setFormatter(formatter)
    root.addHandler(console)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_minimal():
    """
    Only warnings and errors.
    """
    setup(level=logging.WARNING)


def setup_debug():
    """
    Verbose logging for debugging (DEBUG=1).

    RPC transport loggers stay at WARNING; everything from pairarb is shown.
    """
    setup(level=logging.DEBUG)
