"""Logging configuration for html-entity-parser."""

from __future__ import annotations

import logging
import sys
from typing import Optional

LOGGER_NAME = "html_entity_parser"


def setup_logger(
    name: str = LOGGER_NAME,
    level: int = logging.WARNING,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Set up and return the package logger.

    Calling it again only adjusts the level; handlers are attached once.

    Args:
        name: Logger name
        level: Logging level (default: WARNING)
        log_file: Optional file path for logging

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_module_logger(module_name: str) -> logging.Logger:
    """
    Get a child logger for a specific module, e.g. ``html_entity_parser.matcher``.

    Child loggers propagate to the package logger, so configuring it once with
    :func:`setup_logger` covers every module.
    """
    return logging.getLogger(f"{LOGGER_NAME}.{module_name}")
