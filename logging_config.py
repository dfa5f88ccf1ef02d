"""Structured logging configuration for DeskCalc."""

import logging
import sys
from datetime import datetime
from typing import Optional

import config


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs timestamp, level, logger name and message."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).isoformat()
        line = f"{timestamp} [{record.levelname}] {record.name}: {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(
    level: Optional[str] = None, log_file: Optional[str] = None
) -> logging.Logger:
    """Set up logging for the application.

    Args:
        level: Logging level name, defaults to config.LOG_LEVEL
        log_file: Optional file path to also write logs to, defaults to config.LOG_FILE

    Returns:
        The configured "deskcalc" root logger
    """
    level = level or config.LOG_LEVEL
    log_file = log_file or config.LOG_FILE

    logger = logging.getLogger("deskcalc")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(StructuredFormatter())
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get the logger for a module, e.g. get_logger("api") -> deskcalc.api"""
    return logging.getLogger(f"deskcalc.{name}")
