"""Logging configuration for the branchdiff CLI."""

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-32s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_level: Optional[str] = None) -> None:
    """Configure the root logger once, writing to stderr.

    stdout is reserved for the diff itself so it can be piped.
    """
    if log_level is None:
        log_level = os.getenv("BRANCHDIFF_LOG_LEVEL", "INFO")

    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )

    # GitPython logs every command at DEBUG
    logging.getLogger("git").setLevel(max(level, logging.INFO))
