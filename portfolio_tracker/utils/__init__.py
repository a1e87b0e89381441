# portfolio_tracker/utils/__init__.py
"""
Utility modules for the portfolio tracker.

This package contains cross-cutting utilities used throughout the application:
- logging: Logging configuration and setup with correlation ID support
- context: Correlation ID management
- date_utils: Calendar-day helpers (month subtraction, day distance)

Usage:
    from portfolio_tracker.utils import setup_logging
    from portfolio_tracker.utils import correlation_scope, get_correlation_id
    from portfolio_tracker.utils.date_utils import subtract_months
"""

from portfolio_tracker.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
    correlation_scope,
)
from portfolio_tracker.utils.logging import setup_logging

__all__ = [
    # Logging
    "setup_logging",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "correlation_scope",
]
