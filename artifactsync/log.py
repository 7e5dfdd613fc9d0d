"""Logging setup for the command line.

Modules log through ``logging.getLogger(__name__)``; only the CLI installs
handlers, on the ``artifactsync`` package logger.
"""

from __future__ import annotations

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "artifactsync"


def configure_logging(level: str = "INFO", *, action: bool = False) -> logging.Logger:
    """Install a single stderr handler on the package logger.

    In Action mode records are plain ``LEVEL message`` lines so the workflow
    log stays readable; otherwise they go through Rich.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Re-configuring replaces the previous handler.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler: logging.Handler
    if action:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    else:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(handler)
    logger.propagate = False
    return logger
