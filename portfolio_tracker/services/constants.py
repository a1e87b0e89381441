# portfolio_tracker/services/constants.py
"""
Centralized constants for the portfolio tracker services.

Single source of truth for business constants used across the analytics,
rebalancing and exchange-rate code.

Usage:
    from portfolio_tracker.services.constants import (
        ZERO,
        MATERIALITY_THRESHOLD,
        UNCATEGORIZED_LABEL,
    )
"""

from decimal import Decimal


# =============================================================================
# NUMERIC CONSTANTS
# =============================================================================

ZERO: Decimal = Decimal("0")
ONE: Decimal = Decimal("1")
HUNDRED: Decimal = Decimal("100")


# =============================================================================
# CALENDAR CONSTANTS
# =============================================================================

# Average year length including leap years, used for CAGR
DAYS_PER_YEAR: float = 365.25


# =============================================================================
# REBALANCING
# =============================================================================

# Adjustments with an absolute value below this amount (display currency)
# are classified as NO_ACTION, and smaller move suggestions are dropped.
MATERIALITY_THRESHOLD: Decimal = Decimal("1")


# =============================================================================
# LOOKBACK
# =============================================================================

# "on_or_before" lookback rejects begin snapshots farther than this from
# the target date
DEFAULT_LOOKBACK_MAX_DISTANCE_DAYS: int = 14


# =============================================================================
# DASHBOARD
# =============================================================================

# Label used for values of assets without a category
UNCATEGORIZED_LABEL: str = "Uncategorized"

# Key under which uncategorized values are grouped in category maps
UNCATEGORIZED_KEY: str = ""

# Number of snapshots listed in the "recent snapshots" panel
RECENT_SNAPSHOT_LIMIT: int = 5


# =============================================================================
# EXCHANGE RATES
# =============================================================================

# Date segment understood by the rates API as "most recent available"
LATEST_RATES_DATE: str = "latest"

# Retry policy for transient network failures
RATES_MAX_RETRY_ATTEMPTS: int = 3
RATES_RETRY_MIN_WAIT: int = 1
RATES_RETRY_MAX_WAIT: int = 10


# =============================================================================
# CURRENCY DISPLAY
# =============================================================================

# Symbols used when rendering move suggestions; other currencies are
# rendered with their code as prefix
CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "TWD": "NT$",
    "CAD": "CA$",
    "AUD": "A$",
    "HKD": "HK$",
}
