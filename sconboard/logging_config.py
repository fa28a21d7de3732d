"""
SConboard — Logging Setup
==========================

What:  Configures the root logger once for whatever process hosts the form.
How:   logging.basicConfig with a fixed format on stdout, level taken from
       settings.log_level. Library modules only call logging.getLogger.
"""

import logging
import sys
from typing import Optional

from sconboard.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure logging for the entire application.

    Args:
        level: Override for settings.log_level (e.g. "DEBUG" in a script).
    """
    level_name = (level or settings.log_level).upper()

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # httpx logs every request at INFO
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
