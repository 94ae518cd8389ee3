"""
Wait Time Tracker - Structured Logging
Provides JSON-formatted logging for CloudWatch Logs Insights queries.
"""

import logging
import sys
from typing import Optional
from pythonjsonlogger import jsonlogger

from .config import LOG_LEVEL, config


def setup_logger(name: str = __name__) -> logging.Logger:
    """
    Configure structured JSON logger.

    Args:
        name: Logger name (typically __name__ from calling module)

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger(__name__)
        >>> logger.info("Refresh completed", extra={
        ...     "park_count": 2,
        ...     "duration_seconds": 1.4,
        ...     "rides_fetched": 118
        ... })
    """
    logger = logging.getLogger(name)

    # Prevent duplicate handlers
    if logger.hasHandlers():
        return logger

    level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%S'
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)
    logger.propagate = False

    return logger


# Global logger instance
logger = setup_logger('wait_time_tracker')


def log_refresh_start(park_count: int, trigger: str):
    """Log the start of a refresh cycle."""
    logger.info("Refresh started", extra={
        "event_type": "refresh_start",
        "park_count": park_count,
        "trigger": trigger,
        "environment": config.environment
    })


def log_refresh_complete(duration_seconds: float, parks_fetched: int, rides_fetched: int, persisted: bool):
    """Log successful refresh completion."""
    logger.info("Refresh completed", extra={
        "event_type": "refresh_complete",
        "duration_seconds": duration_seconds,
        "parks_fetched": parks_fetched,
        "rides_fetched": rides_fetched,
        "persisted": persisted
    })


def log_refresh_error(error: Exception, park_id: Optional[str] = None):
    """Log a failed refresh cycle with context."""
    logger.error("Refresh failed", extra={
        "event_type": "refresh_error",
        "error_type": type(error).__name__,
        "error_message": str(error),
        "park_id": park_id
    }, exc_info=True)


def log_refresh_coalesced(trigger: str):
    """Log a trigger that arrived while a refresh was already in flight."""
    logger.debug("Refresh already in flight", extra={
        "event_type": "refresh_coalesced",
        "trigger": trigger
    })


def log_store_read_failure(error: Exception, location: str):
    """Log an unreadable history store (treated as a cold start)."""
    logger.warning("History store unreadable, starting empty", extra={
        "event_type": "store_read_failure",
        "error_type": type(error).__name__,
        "error_message": str(error),
        "location": location
    })


def log_store_write_failure(error: Exception, location: str):
    """Log a history write that could not be persisted."""
    logger.warning("Failed to save history", extra={
        "event_type": "store_write_failure",
        "error_type": type(error).__name__,
        "error_message": str(error),
        "location": location
    })


def log_api_request(method: str, path: str, status_code: int, duration_ms: float):
    """Log API request metrics."""
    logger.info("API request", extra={
        "event_type": "api_request",
        "method": method,
        "path": path,
        "status_code": status_code,
        "duration_ms": duration_ms
    })
