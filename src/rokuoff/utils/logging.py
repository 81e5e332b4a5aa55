from __future__ import annotations

import logging
import os
from typing import Literal

import coloredlogs  # type: ignore[import]

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]

PACKAGE_LOGGER = "rokuoff"

# threadName tells scheduler ticks apart from the CLI
LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(threadName)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: LogLevel | None = None) -> logging.Logger:
    """Install colored console output on the ``rokuoff`` logger tree.

    ``level`` wins over the ``LOGLEVEL`` environment variable; INFO otherwise.
    """
    resolved = (level or os.environ.get("LOGLEVEL", "INFO")).upper()
    logger = logging.getLogger(PACKAGE_LOGGER)

    coloredlogs.install(
        level=resolved,
        logger=logger,
        fmt=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )

    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return logger
