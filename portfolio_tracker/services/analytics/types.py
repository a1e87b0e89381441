# portfolio_tracker/services/analytics/types.py
"""
Data types for the analytics services.

All monetary values use Decimal. Rates are fractions (0.05 = 5%) except
allocation percentages, which are 0-100.

Architecture:
    - DashboardPeriod / LookbackPolicy: period selection
    - CashFlow: input to Modified Dietz
    - ResolvedPeriod: begin/end snapshots chosen for a period
    - ValuePoint / CategoryAllocation / SnapshotSummary: dashboard series
    - DashboardSummary: headline numbers for the latest snapshot
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum


class DashboardPeriod(int, Enum):
    """Lookback periods offered on the dashboard, in calendar months."""
    ONE_MONTH = 1
    THREE_MONTHS = 3
    ONE_YEAR = 12

    @property
    def months(self) -> int:
        return int(self.value)

    @property
    def label(self) -> str:
        return {1: "1M", 3: "3M", 12: "1Y"}[self.value]


class LookbackPolicy(str, Enum):
    """
    How the begin snapshot of a period is chosen.

    Attributes:
        CLOSEST: Any snapshot except the latest, smallest absolute day
                 distance to the target, ties go to the earlier snapshot
        ON_OR_BEFORE: Latest snapshot on or before the target, rejected
                      when farther than the configured maximum distance
    """
    CLOSEST = "closest"
    ON_OR_BEFORE = "on_or_before"


# =============================================================================
# INPUT TYPES
# =============================================================================

@dataclass(frozen=True)
class CashFlow:
    """
    External cash flow for Modified Dietz.

    Attributes:
        amount: Positive = inflow, negative = outflow (display currency)
        days_since_start: Days from period start to the flow
    """
    amount: Decimal
    days_since_start: int


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass(frozen=True)
class ResolvedPeriod:
    """Begin and end snapshot dates chosen for a dashboard period."""
    period: DashboardPeriod | int
    target_date: date
    begin_date: date
    end_date: date

    @property
    def total_days(self) -> int:
        return (self.end_date - self.begin_date).days


@dataclass(frozen=True)
class ValuePoint:
    """A dated value in a chart series."""
    date: date
    value: Decimal


@dataclass(frozen=True)
class CategoryAllocation:
    """
    Share of one category in a snapshot.

    Attributes:
        name: Category name, "Uncategorized" for assets without one
        value: Converted value in the display currency
        percentage: 0-100 share of the snapshot total
    """
    name: str
    value: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class SnapshotSummary:
    """Row of the recent-snapshots panel."""
    date: date
    total_value: Decimal
    asset_count: int


@dataclass
class DashboardSummary:
    """
    Headline numbers for the dashboard.

    Fields that cannot be computed are None.
    """
    total_portfolio_value: Decimal
    latest_snapshot_date: date | None = None
    asset_count: int = 0
    cumulative_twr: Decimal | None = None
    cagr: Decimal | None = None
    growth_rates: dict[DashboardPeriod, Decimal | None] = field(default_factory=dict)
    return_rates: dict[DashboardPeriod, Decimal | None] = field(default_factory=dict)
