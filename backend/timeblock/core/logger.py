"""
Logger factory shared by the engine modules.
"""

import logging

from timeblock.core.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logger(name: str) -> logging.Logger:
    """
    Return a module logger with a single console handler attached.

    Handlers are only added once per logger name, so repeated imports do not
    duplicate output. Host applications that configure the root logger can
    still capture records through propagation.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(get_settings().LOG_LEVEL)
    return logger
