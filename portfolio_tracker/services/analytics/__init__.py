# portfolio_tracker/services/analytics/__init__.py
"""
Analytics services.

Architecture:
    analytics/
        ├── types.py       Enums and result dataclasses
        ├── returns.py     Growth, Modified Dietz, TWR, CAGR, allocation (pure)
        ├── lookback.py    Period → begin/end snapshot resolution
        ├── dashboard.py   DashboardData caches + DashboardService
        ├── history.py     Category value/allocation history
        ├── charts.py      ChartTimeRange series filtering
        └── reload.py      ReloadCoordinator (dirty flag, coalesced rebuilds)

Usage:
    from portfolio_tracker.services.analytics import DashboardService, DashboardPeriod

    data = DashboardService(repository, display_currency="USD").load()
    data.return_rate(DashboardPeriod.THREE_MONTHS)
"""

from portfolio_tracker.services.analytics.charts import ChartTimeRange, filter_series
from portfolio_tracker.services.analytics.dashboard import (
    DashboardData,
    DashboardService,
    build_dashboard,
)
from portfolio_tracker.services.analytics.history import CategoryHistoryPoint, category_history
from portfolio_tracker.services.analytics.lookback import (
    find_begin_snapshot_date,
    lookback_target,
    resolve_period,
)
from portfolio_tracker.services.analytics.reload import ReloadCoordinator
from portfolio_tracker.services.analytics.returns import (
    cagr,
    cagr_between,
    category_allocation,
    cumulative_twr,
    growth_rate,
    modified_dietz_return,
)
from portfolio_tracker.services.analytics.types import (
    CashFlow,
    CategoryAllocation,
    DashboardPeriod,
    DashboardSummary,
    LookbackPolicy,
    ResolvedPeriod,
    SnapshotSummary,
    ValuePoint,
)

__all__ = [
    # Service
    "DashboardService",
    "DashboardData",
    "build_dashboard",
    "ReloadCoordinator",
    # Calculations
    "growth_rate",
    "modified_dietz_return",
    "cumulative_twr",
    "cagr",
    "cagr_between",
    "category_allocation",
    # Lookback
    "lookback_target",
    "find_begin_snapshot_date",
    "resolve_period",
    # History / charts
    "category_history",
    "CategoryHistoryPoint",
    "ChartTimeRange",
    "filter_series",
    # Types
    "CashFlow",
    "CategoryAllocation",
    "DashboardPeriod",
    "DashboardSummary",
    "LookbackPolicy",
    "ResolvedPeriod",
    "SnapshotSummary",
    "ValuePoint",
]
