"""Centralized logging configuration for linear-csv-import."""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "linear_csv_import"


def setup_logging(level: str = "WARNING", log_file: str | None = None) -> None:
    """Configure the package logger.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR). Default: WARNING,
               which surfaces skipped statuses and labels without drowning the
               per-row progress output.
        log_file: Optional path to log file. If provided, logs will be written
                  to both stderr and file.
    """
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
    }

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level_map.get(level.upper(), logging.WARNING))

    # Remove any existing handlers to avoid duplicates
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))
        logger.addHandler(file_handler)

    logger.propagate = False
