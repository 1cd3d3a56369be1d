#!/usr/bin/env python3
"""
logging_setup.py
================
Configures the root logger with a console handler and a rotating file
handler (``vanet.log``, 1 MB, 2 backups).

Call :func:`setup_logging` once at startup, before the simulation starts
emitting records.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from config import LOG_FILE


def setup_logging(level: int = logging.INFO, log_dir: Optional[str] = None) -> None:
    """Apply a unified log format to both console and file output.

    Parameters
    ----------
    level : int
        Minimum severity level (e.g. ``logging.DEBUG``, ``logging.INFO``).
    log_dir : str or None
        Directory for the log files; the working directory when *None*.
    """
    root = logging.getLogger()
    root.setLevel(level)

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    base = log_dir or "."

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    ch.setLevel(level)

    fh = RotatingFileHandler(
        os.path.join(base, LOG_FILE), maxBytes=1_000_000, backupCount=2
    )
    fh.setFormatter(fmt)
    fh.setLevel(level)

    root.handlers.clear()
    root.addHandler(ch)
    root.addHandler(fh)

    # ── Dedicated debug file for the tick driver ──────────────────────
    world_logger = logging.getLogger("world")
    world_logger.setLevel(logging.DEBUG)
    for handler in list(world_logger.handlers):
        world_logger.removeHandler(handler)
        handler.close()
    dfh = RotatingFileHandler(
        os.path.join(base, "world_debug.log"), maxBytes=5_000_000, backupCount=2
    )
    dfh.setLevel(logging.DEBUG)
    dfh.setFormatter(fmt)
    world_logger.addHandler(dfh)
