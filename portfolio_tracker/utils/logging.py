# portfolio_tracker/utils/logging.py
"""
Logging configuration for the portfolio tracker.

This module provides centralized logging setup with:
- Settings-driven log levels
- Correlation ID on every record (one ID per dashboard rebuild)
- JSON format option for machine-readable output
- Suppression of noisy third-party library logs

Usage:
    from portfolio_tracker.utils import setup_logging

    setup_logging()

Log Levels:
    DEBUG   - Cache builds, per-snapshot resolution details
    INFO    - Dashboard rebuilds, rate tables attached
    WARNING - Degraded inputs (missing rates, fallback tables, fetch failures)
    ERROR   - Failures requiring attention

Environment Configuration:
    PORTFOLIO_LOG_LEVEL=DEBUG
    PORTFOLIO_LOG_FORMAT=json
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from portfolio_tracker.config import get_settings
from portfolio_tracker.utils.context import get_correlation_id

# =============================================================================
# CONSTANTS
# =============================================================================

# timestamp | level | correlation_id | logger_name | message
DEFAULT_TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_CORRELATION_ID = "-"

NOISY_LOGGERS = [
    "httpx",
    "httpcore",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "asyncio",
]

# Attributes every LogRecord carries; anything else came in through ``extra``
_STANDARD_ATTRS = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {
    "correlation_id", "message",
}


# =============================================================================
# CORRELATION ID FILTER
# =============================================================================

class CorrelationIdFilter(logging.Filter):
    """
    Logging filter that adds the active correlation ID to log records.

    Access in a format string as ``%(correlation_id)s``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


# =============================================================================
# JSON FORMATTER
# =============================================================================

class JsonFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Output format:
    {
        "timestamp": "2024-01-15T10:30:00.123+00:00",
        "level": "INFO",
        "logger": "portfolio_tracker.services.analytics.reload",
        "correlation_id": "reload-1a2b3c4d",
        "message": "Dashboard rebuilt: 12 snapshots",
        "extra": { ... }
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", NO_CORRELATION_ID),
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra = {}
        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS:
                continue
            try:
                json.dumps(value)
                extra[key] = value
            except (TypeError, ValueError):
                extra[key] = str(value)

        if extra:
            log_entry["extra"] = extra

        return json.dumps(log_entry)


# =============================================================================
# SETUP FUNCTION
# =============================================================================

def setup_logging(level: str | None = None, log_format: str | None = None) -> None:
    """
    Configure application-wide logging with correlation ID support.

    Call once at startup. Explicit arguments win over settings.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to settings.log_level.
        log_format: Output format ('text' or 'json').
                    Defaults to settings.log_format.
    """
    settings = get_settings()
    log_level_str = level or settings.log_level
    log_level = _get_log_level(log_level_str)
    format_type = log_format or settings.log_format

    if format_type.lower() == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            fmt=DEFAULT_TEXT_FORMAT,
            datefmt=DEFAULT_DATE_FORMAT,
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(
        f"Logging configured: level={log_level_str}, format={format_type}",
        extra={"config": {"level": log_level_str, "format": format_type}},
    )


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _get_log_level(level_str: str) -> int:
    """Map a level name (any case, WARN accepted) to its logging constant."""
    name = level_str.strip().upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: '{name}'")
    return level
