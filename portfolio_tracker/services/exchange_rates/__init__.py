# portfolio_tracker/services/exchange_rates/__init__.py
"""
Exchange-rate fetching and attachment.

Usage:
    from portfolio_tracker.services.exchange_rates import (
        CurrencyApiProvider,
        ExchangeRateService,
    )
"""

from portfolio_tracker.services.exchange_rates.provider import (
    CurrencyApiProvider,
    ExchangeRateProvider,
)
from portfolio_tracker.services.exchange_rates.service import ExchangeRateService

__all__ = [
    "CurrencyApiProvider",
    "ExchangeRateProvider",
    "ExchangeRateService",
]
