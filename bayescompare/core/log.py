"""Logging setup for bayescompare.

The library only creates module loggers; nothing is configured on import.
Applications (or a notebook session) call ``configure_logging`` once.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from bayescompare.core.config import settings

PACKAGE_LOGGER = "bayescompare"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[Union[int, str]] = None) -> logging.Logger:
    """Attach a stream handler to the package logger and set its level.

    Parameters
    ----------
    level : int | str | None
        Logging level.  Falls back to ``settings.LOG_LEVEL``.

    Returns
    -------
    logging.Logger
        The ``bayescompare`` logger.
    """
    if level is None:
        level = settings.LOG_LEVEL
    if isinstance(level, str):
        level = level.upper()

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # Idempotent: don't stack handlers on repeated calls
    if not any(h.get_name() == PACKAGE_LOGGER for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.set_name(PACKAGE_LOGGER)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
