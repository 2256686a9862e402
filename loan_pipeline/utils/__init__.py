"""
Logging for the loan pipeline processes.

Every worker, the intake API and the runner log through ``get_logger(__name__)``.
Each named logger writes short lines to stdout for the container log and
detailed lines, with the calling function and line, to a rotating file.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from loan_pipeline import config

CONSOLE_FORMAT = '%(levelname)s [%(name)s] %(message)s'
FILE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s'
FILE_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def _file_handler(log_file: str) -> logging.Handler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding='utf-8')
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
    return handler


def setup_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the logger for ``name``, attaching the pipeline's handlers on first use.

    The level comes from ``LOG_LEVEL`` and the file from ``LOG_FILE``.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))
    logger.addHandler(_console_handler())
    logger.addHandler(_file_handler(config.LOG_FILE))
    # handlers are per module logger; the root would print every line twice
    logger.propagate = False
    return logger


get_logger = setup_logger
