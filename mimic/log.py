"""
Logging setup shared by every mimic module.

Modules use:
    from mimic.log import get_logger
    logger = get_logger(__name__)

Only entry points (CLI, server) call configure_logging().
"""

import logging
import sys
from typing import Union

from .core.config import LOG_LEVEL

DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: Union[int, str] = LOG_LEVEL,
                      fmt: str = DEFAULT_FORMAT,
                      stream=sys.stderr) -> None:
    """Install a single root handler; repeated calls only change the level"""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(handler)

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    root.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
