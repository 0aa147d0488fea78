"""Centralized logging configuration for the budget backend.

This module provides structured logging with context fields for bank sync
and categorization operations. Logs are written to both console (for Docker
logs) and rotating files.

Usage:
    from logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("Fetching accounts", extra={"user_id": user_id, "bank_id": bank_id})
"""

import logging
import os
from logging.handlers import RotatingFileHandler

# In Docker: /app/logs (mounted volume)
LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


class StructuredFormatter(logging.Formatter):
    """Custom formatter that adds context fields to log records.

    Supports the following context fields via extra={} parameter:
    - user_id: Authenticated user ID
    - bank_id: user_banks row ID
    """

    def format(self, record):
        """Format log record with context fields."""
        record.user_id = getattr(record, "user_id", None)
        record.bank_id = getattr(record, "bank_id", None)

        return super().format(record)


def get_logger(name: str) -> logging.Logger:
    """Get configured logger.

    Creates a logger with:
    - Console handler for Docker logs (LOG_LEVEL, default INFO)
    - Rotating file handler for all logs (DEBUG level)
    - Separate error file handler (ERROR level)

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logging.Logger instance
    """
    logger = logging.getLogger(name)

    # Skip if already configured (prevents duplicate handlers)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    os.makedirs(LOG_DIR, exist_ok=True)

    console = logging.StreamHandler()
    console.setLevel(LOG_LEVEL)
    console.setFormatter(
        StructuredFormatter("[%(levelname)s] [user:%(user_id)s] %(message)s")
    )
    logger.addHandler(console)

    file_format = StructuredFormatter(
        "[%(asctime)s] [%(levelname)s] [%(name)s] "
        "[user:%(user_id)s bank:%(bank_id)s] %(message)s"
    )

    file_handler = RotatingFileHandler(
        os.path.join(LOG_DIR, "budget_app.log"),
        maxBytes=10 * 1024 * 1024,  # 10MB per file
        backupCount=30,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(file_format)
    logger.addHandler(file_handler)

    error_handler = RotatingFileHandler(
        os.path.join(LOG_DIR, "budget_app_errors.log"),
        maxBytes=10 * 1024 * 1024,
        backupCount=30,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(file_format)
    logger.addHandler(error_handler)

    return logger


def mask_token(token: str | None, visible: int = 20) -> str:
    """Shorten a secret for log output (first characters only)."""
    if not token:
        return "undefined"
    return f"{token[:visible]}..."
