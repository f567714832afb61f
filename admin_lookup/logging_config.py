"""
Centralized logging configuration for the lookup client and its tools.

Usage:
    from admin_lookup.logging_config import setup_logging
    logger = setup_logging("lookup_cli")

    logger.info("Message")
    logger.error("Search failed", exc_info=True)

Library modules use get_logger("admin_lookup.<area>") so that a tool which
called setup_logging("admin_lookup") controls all of them at once.
"""

import logging
import sys
from datetime import datetime
from typing import Optional, Union


class ServiceFormatter(logging.Formatter):
    """Formatter with timestamps, levels, and logger name."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        base_msg = f"[{timestamp}] [{record.levelname}] [{record.name}] {record.getMessage()}"

        if record.exc_info:
            exc_text = self.formatException(record.exc_info)
            base_msg = f"{base_msg}\n{exc_text}"

        return base_msg


def _coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    service_name: str,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging for a tool or library namespace.

    Args:
        service_name: Logger name (e.g., "admin_lookup", "lookup_cli")
        level: Logging level, numeric or name (default: INFO)
        log_file: Optional file path to write logs to

    Returns:
        Configured logger instance
    """
    level = _coerce_level(level)
    logger = logging.getLogger(service_name)
    logger.setLevel(level)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(ServiceFormatter())
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(ServiceFormatter())
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a library module.

    Unlike the tools, library modules never install handlers themselves:
    records flow up to whichever parent was configured via setup_logging().

    Args:
        name: Dotted logger name, e.g. "admin_lookup.search"

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
