"""
Logging setup - one console handler on the package root logger.

Every module logs through `logging.getLogger("google_signin.<area>")`, so
configuring the "google_signin" logger once at startup covers all of them.
"""

import logging
import sys

LOG_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Attach a stdout handler to the package logger.

    Safe to call more than once: the handler is only added the first time,
    later calls just update the level.
    """
    logger = logging.getLogger("google_signin")
    logger.setLevel(level.upper())

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    return logger
