# logger.py
"""
Centralized logging: console (INFO) plus a DEBUG log file in the data dir.
"""

import logging
import sys
from pathlib import Path

from config import LOG_FILE

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def get_logger(name: str, log_file: str | Path | None = None) -> logging.Logger:
    """
    Get or create a logger with console and file handlers.

    Handlers are attached once per logger name; later calls return the same logger.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    formatter = logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.INFO)
    console.setFormatter(formatter)
    logger.addHandler(console)

    path = Path(log_file) if log_file else LOG_FILE
    try:
        fh = logging.FileHandler(path, mode="a", encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        logger.addHandler(fh)
    except OSError as e:
        logger.warning("Could not open log file %s: %s", path, e)

    return logger
