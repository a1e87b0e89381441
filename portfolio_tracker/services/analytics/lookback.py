# portfolio_tracker/services/analytics/lookback.py
"""
Period and lookback resolution.

A dashboard period ("1M", "3M", "1Y") ends at the latest snapshot. Its
begin snapshot is found by going back N calendar months from the latest
snapshot date and picking a snapshot near that target date.

Snapshots are irregular, so "near" needs a policy (see LookbackPolicy):

    CLOSEST        smallest |days to target| among all snapshots except
                   the latest; ties go to the earlier snapshot
    ON_OR_BEFORE   most recent snapshot on or before the target, but only
                   within max_distance_days of it

Only dates are passed around here; snapshots are unique per date.
"""

import logging
from collections.abc import Sequence
from datetime import date

from portfolio_tracker.services.analytics.types import (
    DashboardPeriod,
    LookbackPolicy,
    ResolvedPeriod,
)
from portfolio_tracker.services.constants import DEFAULT_LOOKBACK_MAX_DISTANCE_DAYS
from portfolio_tracker.utils.date_utils import subtract_months

logger = logging.getLogger(__name__)


def period_months(period: DashboardPeriod | int) -> int:
    if isinstance(period, DashboardPeriod):
        return period.months
    return int(period)


def lookback_target(latest_date: date, period: DashboardPeriod | int) -> date:
    """Latest snapshot date minus the period's months, clamped to month end."""
    return subtract_months(latest_date, period_months(period))


def _closest(candidates: Sequence[date], target: date) -> date | None:
    best: date | None = None
    best_distance = 0
    for candidate in sorted(candidates):
        distance = abs((candidate - target).days)
        # Strict comparison keeps the earlier date on ties
        if best is None or distance < best_distance:
            best = candidate
            best_distance = distance
    return best


def _on_or_before(
        candidates: Sequence[date],
        target: date,
        max_distance_days: int,
) -> date | None:
    eligible = [candidate for candidate in candidates if candidate <= target]
    if not eligible:
        return None
    best = max(eligible)
    if (target - best).days > max_distance_days:
        logger.debug(
            f"Lookback rejected {best}: {(target - best).days} days before "
            f"target {target} (max {max_distance_days})"
        )
        return None
    return best


def find_begin_snapshot_date(
        snapshot_dates: Sequence[date],
        target: date,
        policy: LookbackPolicy = LookbackPolicy.CLOSEST,
        max_distance_days: int = DEFAULT_LOOKBACK_MAX_DISTANCE_DAYS,
) -> date | None:
    """
    Pick the begin snapshot date for a lookback target.

    The latest snapshot is never a candidate: it is the end of every period.

    Args:
        snapshot_dates: All snapshot dates (any order)
        target: Lookback target date
        policy: Selection policy
        max_distance_days: Distance limit for ON_OR_BEFORE

    Returns:
        The chosen date, or None if no snapshot qualifies
    """
    if len(snapshot_dates) < 2:
        return None

    latest = max(snapshot_dates)
    candidates = [d for d in snapshot_dates if d != latest]

    if LookbackPolicy(policy) is LookbackPolicy.ON_OR_BEFORE:
        return _on_or_before(candidates, target, max_distance_days)
    return _closest(candidates, target)


def resolve_period(
        snapshot_dates: Sequence[date],
        period: DashboardPeriod | int,
        policy: LookbackPolicy = LookbackPolicy.CLOSEST,
        max_distance_days: int = DEFAULT_LOOKBACK_MAX_DISTANCE_DAYS,
) -> ResolvedPeriod | None:
    """
    Resolve a period to (begin, end) snapshot dates.

    Returns None with fewer than two snapshots or when the policy finds
    no begin snapshot.
    """
    if len(snapshot_dates) < 2:
        return None

    latest = max(snapshot_dates)
    target = lookback_target(latest, period)
    begin = find_begin_snapshot_date(snapshot_dates, target, policy, max_distance_days)
    if begin is None:
        return None

    return ResolvedPeriod(
        period=period,
        target_date=target,
        begin_date=begin,
        end_date=latest,
    )


def intermediate_dates(
        snapshot_dates: Sequence[date],
        begin: date,
        end: date,
) -> list[date]:
    """Snapshot dates strictly after ``begin`` up to and including ``end``, ascending."""
    return sorted(d for d in snapshot_dates if begin < d <= end)
