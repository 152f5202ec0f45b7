"""Logging configuration for command-line use."""

from __future__ import annotations

import logging
import os
from typing import Optional

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"
_HANDLER_NAME = "arbor_scheduler"


def init_logging(level: Optional[str] = None) -> None:
    """
    Attach a stderr handler to the package logger.

    Level comes from the argument, then ``ARBOR_LOG_LEVEL``, then WARNING.
    Calling this more than once only updates the level.
    """
    level_name = (level or os.getenv("ARBOR_LOG_LEVEL", "WARNING")).upper()
    logger = logging.getLogger("arbor_scheduler")
    logger.setLevel(level_name)

    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
        logger.addHandler(handler)
