"""
Unified Logging Configuration

This module sets up a centralized logging system for the entire application.
All modules should import and use the logger from this module instead of
using print() statements.

Usage:
    from core.logging import logger

    logger.debug("Detailed debugging information")
    logger.info("General informational messages")
    logger.warning("Warning messages for potentially harmful situations")
    logger.error("Error messages for serious problems")

Log Levels (from most to least verbose):
    DEBUG    - Detailed diagnostic information (e.g., "Dropped malformed price record")
    INFO     - General informational messages (e.g., "Price feed ready: 32 tokens")
    WARNING  - Warnings about potential issues (e.g., "Rate limited, retrying")
    ERROR    - Errors that don't crash the app (e.g., "Price refresh failed")
    CRITICAL - Severe errors that may crash

Configuration:
    Log level is controlled by the LOG_LEVEL setting in .env file.
"""

import logging
import sys
from typing import Optional


def setup_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    include_timestamp: bool = True,
    include_module: bool = True
) -> logging.Logger:
    """
    Configure and return the application logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string (uses default if None)
        include_timestamp: Include timestamp in log messages
        include_module: Include module name in log messages

    Returns:
        logging.Logger: Configured logger instance

    Example:
        >>> logger = setup_logging(log_level="DEBUG")
        >>> logger.info("Application started")
        2024-01-01 12:00:00 [INFO] swapfeed Application started
    """
    if log_format is None:
        format_parts = []

        if include_timestamp:
            format_parts.append("%(asctime)s")

        format_parts.append("[%(levelname)s]")

        if include_module:
            format_parts.append("%(name)s")

        format_parts.append("%(message)s")

        log_format = " ".join(format_parts)

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True  # Override any existing configuration
    )

    logger = logging.getLogger("swapfeed")
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    return logger


# ============================================
# Initialize Logger with Settings
# ============================================

try:
    from core.config import settings
    log_level = settings.log_level if hasattr(settings, 'log_level') else "INFO"
except ImportError:
    # If settings not available yet (during initial import), use INFO
    log_level = "INFO"

logger = setup_logging(log_level=log_level)


# ============================================
# Convenience Functions
# ============================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module or component.

    Args:
        name: Name for the logger (typically __name__)

    Returns:
        logging.Logger: Logger instance for the specified name

    Example:
        # In feeds/price_client.py:
        from core.logging import get_logger
        logger = get_logger(__name__)  # Creates "swapfeed.feeds.price_client"
    """
    return logging.getLogger(f"swapfeed.{name}")


def set_log_level(level: str) -> None:
    """
    Change the log level at runtime.

    Args:
        level: New log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))


# ============================================
# Log Helper Functions
# ============================================

def log_api_request(source: str, url: str, attempt: int = 1) -> None:
    """
    Log an outgoing price request with consistent formatting.

    Example:
        >>> log_api_request("prices", "https://interview.switcheo.com/prices.json")
        [DEBUG] API Request: prices https://interview.switcheo.com/prices.json | Attempt: 1
    """
    logger.debug(f"API Request: {source} {url} | Attempt: {attempt}")


def log_api_response(source: str, url: str, status: int, response_time: float = None) -> None:
    """
    Log an API response with status and timing information.

    Example:
        >>> log_api_response("prices", "https://interview.switcheo.com/prices.json", 200, 0.342)
        [DEBUG] API Response: prices https://interview.switcheo.com/prices.json | Status: 200 | Time: 0.342s
    """
    time_str = f" | Time: {response_time:.3f}s" if response_time else ""
    logger.debug(f"API Response: {source} {url} | Status: {status}{time_str}")


def log_feed_transition(previous: str, current: str, details: str = None) -> None:
    """
    Log a price feed status transition.

    Transitions into "error" are logged at WARNING, everything else at INFO
    (or DEBUG when the status did not change).

    Example:
        >>> log_feed_transition("loading", "ready", "32 tokens")
        [INFO] Feed: loading -> ready | 32 tokens
    """
    details_str = f" | {details}" if details else ""

    if current == "error":
        level = logging.WARNING
    elif previous == current:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logger.log(level, f"Feed: {previous} -> {current}{details_str}")


logger.debug("Logging system initialized")
