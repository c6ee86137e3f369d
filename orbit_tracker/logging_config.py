"""
Logging Configuration

Centralized logging configuration for the tracker.
Library modules only create loggers; applications call configure_logging() once.

Usage:
    from orbit_tracker.logging_config import get_logger, configure_logging

    configure_logging()
    logger = get_logger(__name__)
    logger.info("Tracking started")
    logger.warning("TLE data is outdated")
"""

import logging
import sys
from typing import Optional, Union

# Default logging format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Configure logging for the entire application.

    Parameters
    ----------
    level : int or str
        Logging level (e.g., logging.DEBUG or "DEBUG")
    log_file : str, optional
        Path to log file. If None, logs only to console.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Parameters
    ----------
    name : str
        Name of the logger (typically __name__)

    Returns
    -------
    logging.Logger
        Logger instance
    """
    return logging.getLogger(name)
