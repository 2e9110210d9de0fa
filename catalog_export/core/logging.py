import logging
import sys
from pathlib import Path
from typing import Union

LOGGER_NAME = "catalog_export"

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(log_level: str = "INFO") -> logging.Logger:
    """
    Configure and return a structured logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger instance
    """
    # Create logger
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper()))

    # Remove existing console handlers to avoid duplicates (file handlers survive)
    for existing in list(logger.handlers):
        if not isinstance(existing, logging.FileHandler):
            logger.removeHandler(existing)

    # Create console handler
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, log_level.upper()))

    # Create formatter with timestamp, level, and message
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    handler.setFormatter(formatter)

    # Add handler to logger
    logger.addHandler(handler)

    return logger


def attach_file_handler(log_file: Union[str, Path]) -> logging.FileHandler:
    """
    Append log records of the service logger to a file.

    Used by the scheduled export so every unattended run leaves a trail
    next to the process supervisor's own logs.

    Args:
        log_file: Path of the log file (parent directories are created)

    Returns:
        The attached handler (pass it to detach_file_handler when done)
    """
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))

    logger = logging.getLogger(LOGGER_NAME)
    logger.addHandler(handler)
    logger.info(f"📝 Logging to: {path}")

    return handler


def detach_file_handler(handler: logging.FileHandler) -> None:
    """Remove and close a handler added by attach_file_handler."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.removeHandler(handler)
    handler.close()
