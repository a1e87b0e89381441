# portfolio_tracker/services/analytics/dashboard.py
"""
Dashboard series with per-load caches.

Every derived number on the dashboard comes from a handful of per-snapshot
values. These are computed once per load by ``build_dashboard`` and stored
in an immutable ``DashboardData``; all accessors read from it.

Cached per load:
    - Converted snapshot totals and category breakdowns (keyed by date)
    - Net converted cash flow per snapshot
    - Modified Dietz return of every consecutive snapshot pair
    - Resolved begin/end dates of each DashboardPeriod
    - Intermediate snapshot dates of each resolved period
    - Growth and Modified Dietz return of each resolved period
    - Cumulative TWR, CAGR, allocations and every chart series

Valuation:
    By default a snapshot is valued with its carry-forward composite values,
    converted into the display currency with the snapshot's own rate table.
    With ``use_carry_forward=False`` only the values entered on that
    snapshot are counted.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from portfolio_tracker.config import Settings, get_settings
from portfolio_tracker.models import Snapshot
from portfolio_tracker.services import currency
from portfolio_tracker.services.analytics.lookback import (
    intermediate_dates,
    resolve_period,
)
from portfolio_tracker.services.analytics.returns import (
    cagr_between,
    category_allocation,
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
from portfolio_tracker.services.carry_forward import values_by_snapshot
from portfolio_tracker.services.constants import (
    DEFAULT_LOOKBACK_MAX_DISTANCE_DAYS,
    ONE,
    RECENT_SNAPSHOT_LIMIT,
    UNCATEGORIZED_KEY,
    UNCATEGORIZED_LABEL,
    ZERO,
)
from portfolio_tracker.services.protocols import StorageProtocol

logger = logging.getLogger(__name__)


def display_category_name(name: str) -> str:
    return UNCATEGORIZED_LABEL if name == UNCATEGORIZED_KEY else name


@dataclass(frozen=True)
class DashboardData:
    """
    Everything the dashboard shows, computed for one load.

    Build with ``build_dashboard``; never mutated afterwards, so a reader
    holding a reference always sees a consistent set of numbers. Accessors
    only look values up.
    """
    display_currency: str
    snapshot_dates: list[date] = field(default_factory=list)
    totals: dict[date, Decimal] = field(default_factory=dict)
    category_values: dict[date, dict[str, Decimal]] = field(default_factory=dict)
    net_cash_flows: dict[date, Decimal] = field(default_factory=dict)
    asset_counts: dict[date, int] = field(default_factory=dict)
    period_returns: list[Decimal | None] = field(default_factory=list)
    resolved_periods: dict[DashboardPeriod, ResolvedPeriod] = field(default_factory=dict)
    intermediate_snapshots: dict[DashboardPeriod, list[date]] = field(default_factory=dict)
    growth_rates: dict[DashboardPeriod, Decimal | None] = field(default_factory=dict)
    return_rates: dict[DashboardPeriod, Decimal | None] = field(default_factory=dict)
    cumulative_twr: Decimal | None = None
    cagr: Decimal | None = None
    allocations: dict[date, list[CategoryAllocation]] = field(default_factory=dict)
    portfolio_value_history: list[ValuePoint] = field(default_factory=list)
    twr_history: list[ValuePoint] = field(default_factory=list)
    category_value_history: dict[str, list[ValuePoint]] = field(default_factory=dict)
    recent_snapshots: list[SnapshotSummary] = field(default_factory=list)

    # =========================================================================
    # SUMMARY
    # =========================================================================

    @property
    def is_empty(self) -> bool:
        return not self.snapshot_dates

    @property
    def latest_snapshot_date(self) -> date | None:
        return self.snapshot_dates[-1] if self.snapshot_dates else None

    @property
    def total_portfolio_value(self) -> Decimal:
        latest = self.latest_snapshot_date
        return self.totals[latest] if latest is not None else ZERO

    @property
    def asset_count(self) -> int:
        latest = self.latest_snapshot_date
        return self.asset_counts[latest] if latest is not None else 0

    def summary(self) -> DashboardSummary:
        return DashboardSummary(
            total_portfolio_value=self.total_portfolio_value,
            latest_snapshot_date=self.latest_snapshot_date,
            asset_count=self.asset_count,
            cumulative_twr=self.cumulative_twr,
            cagr=self.cagr,
            growth_rates={period: self.growth_rate(period) for period in DashboardPeriod},
            return_rates={period: self.return_rate(period) for period in DashboardPeriod},
        )

    # =========================================================================
    # PERIOD PERFORMANCE
    # =========================================================================

    def period_date_range(self, period: DashboardPeriod) -> tuple[date, date] | None:
        resolved = self.resolved_periods.get(period)
        if resolved is None:
            return None
        return resolved.begin_date, resolved.end_date

    def growth_rate(self, period: DashboardPeriod) -> Decimal | None:
        """Growth between the resolved begin and end snapshots of ``period``."""
        return self.growth_rates.get(period)

    def return_rate(self, period: DashboardPeriod) -> Decimal | None:
        """Modified Dietz return over the resolved period."""
        return self.return_rates.get(period)

    # =========================================================================
    # ALLOCATIONS
    # =========================================================================

    def category_allocations_for(self, snapshot_date: date) -> list[CategoryAllocation]:
        """
        Category allocations of one snapshot, largest value first.

        Empty when the date has no snapshot or its total is not positive.
        """
        return list(self.allocations.get(snapshot_date, []))

    @property
    def category_allocations(self) -> list[CategoryAllocation]:
        latest = self.latest_snapshot_date
        return self.category_allocations_for(latest) if latest is not None else []


# =============================================================================
# BUILDING
# =============================================================================

def _consecutive_returns(
        dates: Sequence[date],
        totals: dict[date, Decimal],
        net_cash_flows: dict[date, Decimal],
) -> list[Decimal | None]:
    returns: list[Decimal | None] = []
    for begin, end in zip(dates, dates[1:]):
        total_days = (end - begin).days
        if total_days <= 0:
            returns.append(None)
            continue
        # Only the end snapshot lies in (begin, end]
        amount = net_cash_flows.get(end, ZERO)
        cash_flows = [CashFlow(amount=amount, days_since_start=total_days)] if amount != ZERO else []
        returns.append(
            modified_dietz_return(totals[begin], totals[end], cash_flows, total_days)
        )
    return returns


def _period_return(
        resolved: ResolvedPeriod,
        intermediates: Sequence[date],
        totals: dict[date, Decimal],
        net_cash_flows: dict[date, Decimal],
) -> Decimal | None:
    """
    Modified Dietz return over one resolved period.

    Cash flows come from every snapshot strictly after the begin snapshot
    through the end snapshot; zero net flows are skipped.
    """
    total_days = resolved.total_days
    if total_days <= 0:
        return None

    cash_flows = []
    for snapshot_date in intermediates:
        amount = net_cash_flows.get(snapshot_date, ZERO)
        if amount != ZERO:
            cash_flows.append(
                CashFlow(amount=amount, days_since_start=(snapshot_date - resolved.begin_date).days)
            )

    return modified_dietz_return(
        begin_value=totals[resolved.begin_date],
        end_value=totals[resolved.end_date],
        cash_flows=cash_flows,
        total_days=total_days,
    )


def _allocations(total: Decimal, breakdown: dict[str, Decimal]) -> list[CategoryAllocation]:
    if total <= ZERO:
        return []
    allocations = [
        CategoryAllocation(
            name=display_category_name(name),
            value=value,
            percentage=category_allocation(value, total),
        )
        for name, value in breakdown.items()
    ]
    return sorted(allocations, key=lambda a: a.value, reverse=True)


def _twr_history(dates: Sequence[date], period_returns: Sequence[Decimal | None]) -> list[ValuePoint]:
    """
    Cumulative TWR at every snapshot, starting at 0 on the first one.

    Kept as a running product; undefined period returns leave it unchanged.
    """
    if len(dates) < 2:
        return []

    history = [ValuePoint(date=dates[0], value=ZERO)]
    product = ONE
    for snapshot_date, period_return in zip(dates[1:], period_returns):
        if period_return is not None:
            product *= ONE + period_return
        history.append(ValuePoint(date=snapshot_date, value=product - ONE))
    return history


def _category_value_history(
        dates: Sequence[date],
        breakdowns: dict[date, dict[str, Decimal]],
) -> dict[str, list[ValuePoint]]:
    """Value series per category; a category appears only where it has value."""
    result: dict[str, list[ValuePoint]] = {}
    for snapshot_date in dates:
        for name, value in breakdowns[snapshot_date].items():
            result.setdefault(display_category_name(name), []).append(
                ValuePoint(date=snapshot_date, value=value)
            )
    return result


def build_dashboard(
        snapshots: Sequence[Snapshot],
        display_currency: str,
        use_carry_forward: bool = True,
        lookback_policy: LookbackPolicy = LookbackPolicy.CLOSEST,
        max_distance_days: int = DEFAULT_LOOKBACK_MAX_DISTANCE_DAYS,
) -> DashboardData:
    """
    Compute every dashboard cache for ``snapshots``.

    Args:
        snapshots: All snapshots, with values, cash flows and rate tables loaded
        display_currency: Currency all totals are reported in
        use_carry_forward: Value snapshots with composite values
        lookback_policy: Begin-snapshot policy for periods
        max_distance_days: Distance limit for the ON_OR_BEFORE policy

    Returns:
        Immutable DashboardData
    """
    ordered = sorted(snapshots, key=lambda s: s.date)
    if not ordered:
        return DashboardData(display_currency=display_currency)

    dates = [snapshot.date for snapshot in ordered]

    values_by_date = values_by_snapshot(ordered, use_carry_forward)

    totals: dict[date, Decimal] = {}
    breakdowns: dict[date, dict[str, Decimal]] = {}
    net_cash_flows: dict[date, Decimal] = {}
    asset_counts: dict[date, int] = {}

    for snapshot in ordered:
        values = values_by_date.get(snapshot.date, [])
        rate_table = snapshot.exchange_rate

        missing = currency.unconvertible_currencies(values, display_currency, rate_table)
        if missing:
            logger.warning(
                f"Snapshot {snapshot.date}: no rate for {', '.join(sorted(missing))}, "
                f"values counted unconverted"
            )

        breakdown = currency.category_values(values, display_currency, rate_table)
        breakdowns[snapshot.date] = breakdown
        totals[snapshot.date] = sum(breakdown.values(), ZERO)
        net_cash_flows[snapshot.date] = currency.snapshot_net_cash_flow(snapshot, display_currency)
        asset_counts[snapshot.date] = len(values)

    period_returns = _consecutive_returns(dates, totals, net_cash_flows)

    resolved_periods: dict[DashboardPeriod, ResolvedPeriod] = {}
    intermediates: dict[DashboardPeriod, list[date]] = {}
    growth_rates: dict[DashboardPeriod, Decimal | None] = {}
    return_rates: dict[DashboardPeriod, Decimal | None] = {}
    for period in DashboardPeriod:
        resolved = resolve_period(dates, period, lookback_policy, max_distance_days)
        if resolved is None:
            continue
        resolved_periods[period] = resolved
        intermediates[period] = intermediate_dates(dates, resolved.begin_date, resolved.end_date)
        growth_rates[period] = growth_rate(totals[resolved.begin_date], totals[resolved.end_date])
        return_rates[period] = _period_return(resolved, intermediates[period], totals, net_cash_flows)

    twr_history = _twr_history(dates, period_returns)
    first, latest = dates[0], dates[-1]

    logger.debug(
        f"Dashboard caches built: {len(dates)} snapshots, "
        f"{len(resolved_periods)} periods resolved, currency={display_currency}"
    )

    return DashboardData(
        display_currency=display_currency,
        snapshot_dates=dates,
        totals=totals,
        category_values=breakdowns,
        net_cash_flows=net_cash_flows,
        asset_counts=asset_counts,
        period_returns=period_returns,
        resolved_periods=resolved_periods,
        intermediate_snapshots=intermediates,
        growth_rates=growth_rates,
        return_rates=return_rates,
        cumulative_twr=twr_history[-1].value if twr_history else None,
        cagr=cagr_between(totals[first], totals[latest], first, latest) if len(dates) > 1 else None,
        allocations={d: _allocations(totals[d], breakdowns[d]) for d in dates},
        portfolio_value_history=[ValuePoint(date=d, value=totals[d]) for d in dates],
        twr_history=twr_history,
        category_value_history=_category_value_history(dates, breakdowns),
        recent_snapshots=[
            SnapshotSummary(date=d, total_value=totals[d], asset_count=asset_counts[d])
            for d in reversed(dates[-RECENT_SNAPSHOT_LIMIT:])
        ],
    )


class DashboardService:
    """
    Loads dashboard data from storage.

    Usage:
        service = DashboardService(SnapshotRepository(db), display_currency="USD")
        data = service.load()
        data.growth_rate(DashboardPeriod.ONE_MONTH)
    """

    def __init__(
            self,
            storage: StorageProtocol,
            display_currency: str,
            use_carry_forward: bool = True,
            lookback_policy: LookbackPolicy | str = LookbackPolicy.CLOSEST,
            max_distance_days: int = DEFAULT_LOOKBACK_MAX_DISTANCE_DAYS,
    ) -> None:
        self._storage = storage
        self.display_currency = display_currency
        self.use_carry_forward = use_carry_forward
        self.lookback_policy = LookbackPolicy(lookback_policy)
        self.max_distance_days = max_distance_days

    @classmethod
    def from_settings(cls, storage: StorageProtocol, settings: Settings | None = None) -> "DashboardService":
        """
        Build with every analytics option taken from settings.

        Defaults to the process-wide settings (PORTFOLIO_* environment).
        """
        settings = settings or get_settings()
        return cls(
            storage,
            display_currency=settings.display_currency,
            use_carry_forward=settings.use_carry_forward,
            lookback_policy=settings.lookback_policy,
            max_distance_days=settings.lookback_max_distance_days,
        )

    def load(self) -> DashboardData:
        return build_dashboard(
            self._storage.all_snapshots(),
            display_currency=self.display_currency,
            use_carry_forward=self.use_carry_forward,
            lookback_policy=self.lookback_policy,
            max_distance_days=self.max_distance_days,
        )
