# portfolio_tracker/services/analytics/history.py
"""
Per-category value and allocation history.

Membership is evaluated as of now: an asset that moved from "Bonds" to
"Cash" last week counts as "Cash" in every historical snapshot. Historical
category membership is not recorded, so past allocations are restated
with today's grouping.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from portfolio_tracker.models import Category, Snapshot
from portfolio_tracker.services import currency
from portfolio_tracker.services.analytics.returns import category_allocation
from portfolio_tracker.services.carry_forward import values_by_snapshot
from portfolio_tracker.services.constants import ZERO

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryHistoryPoint:
    """Value of one category at one snapshot, and its share of the total (0-100)."""
    date: date
    value: Decimal
    allocation_percentage: Decimal


def category_history(
        category: Category,
        snapshots: Sequence[Snapshot],
        display_currency: str,
        use_carry_forward: bool = True,
) -> list[CategoryHistoryPoint]:
    """
    Value and allocation of ``category`` at every snapshot, oldest first.

    Args:
        category: Category whose current assets are tracked
        snapshots: All snapshots
        display_currency: Currency for values
        use_carry_forward: Value snapshots with composite values

    Returns:
        One point per snapshot, including zero-valued ones
    """
    member_ids = {asset.id for asset in category.assets}
    ordered = sorted(snapshots, key=lambda s: s.date)
    values_by_date = values_by_snapshot(ordered, use_carry_forward)

    history = []
    for snapshot in ordered:
        values = values_by_date.get(snapshot.date, [])
        rate_table = snapshot.exchange_rate
        total = currency.total_value(values, display_currency, rate_table)
        members = [v for v in values if v.asset is not None and v.asset.id in member_ids]
        value = currency.total_value(members, display_currency, rate_table) if members else ZERO
        history.append(
            CategoryHistoryPoint(
                date=snapshot.date,
                value=value,
                allocation_percentage=category_allocation(value, total),
            )
        )

    logger.debug(f"Category history for {category.name!r}: {len(history)} points")
    return history
