"""Console logging for the gauge engine and its front end."""

import logging
from typing import Optional, Union

from .config import get_settings

LOGGER_NAME = "dwin_gauge"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-12s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: Optional[Union[int, str]] = None) -> logging.Logger:
    """
    Attach a console handler to the package logger.

    Calling this more than once only updates the level; handlers are never
    stacked across Streamlit reruns.
    """
    if level is None:
        level = get_settings().log_level
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if not any(getattr(h, "_dwin_gauge", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
        handler._dwin_gauge = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
        logger.propagate = False
    return logger
