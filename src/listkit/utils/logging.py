"""Console logging for applications embedding listkit.

Library modules only create ``logging.getLogger(__name__)`` loggers; an
application calls :func:`enable_console_logging` once to see their output.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

PACKAGE_LOGGER = "listkit"
CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def enable_console_logging(
    *,
    level: int = logging.INFO,
    stream: TextIO | None = None,
    handler_name: str = "listkit-console",
) -> logging.Logger:
    """Attach a named stream handler to the package logger and return it.

    Calling it again with the same *handler_name* only updates the level.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for handler in logger.handlers:
        if handler.name == handler_name:
            handler.setLevel(level)
            return logger
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.name = handler_name
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(handler)
    return logger
