# portfolio_tracker/services/currency.py
"""
Currency conversion engine.

Rate table convention: "1 base_currency = rate × code", with every code
stored lowercase and the base currency itself implicitly 1.

    base → X        value × rate[X]
    X → base        value / rate[X]
    X → Y           value / rate[X] × rate[Y]

Conversion never raises. When the table is missing, a needed rate is
missing, or the divisor is not positive, the input value is returned
unchanged. This keeps dashboards rendering while rates are unavailable;
callers that need to know can ask ``can_convert`` first.

Line items (asset values, cash flows) with an empty currency are in the
display currency.
"""

import logging
from collections.abc import Iterable
from decimal import Decimal

from portfolio_tracker.models import CashFlowOperation, Snapshot
from portfolio_tracker.services.constants import UNCATEGORIZED_KEY, ZERO
from portfolio_tracker.services.protocols import RateTableProtocol, ValuedItemProtocol

logger = logging.getLogger(__name__)


def normalize_currency(code: str | None) -> str:
    return (code or "").strip().lower()


def effective_currency(item_currency: str | None, display_currency: str) -> str:
    """The item's own currency, or the display currency when it is empty."""
    return normalize_currency(item_currency) or normalize_currency(display_currency)


def _needed_rates(
        from_currency: str,
        to_currency: str,
        rate_table: RateTableProtocol,
) -> tuple[Decimal, Decimal] | None:
    from_rate = rate_table.rate_for(from_currency)
    to_rate = rate_table.rate_for(to_currency)
    if from_rate is None or to_rate is None or from_rate <= ZERO:
        return None
    return from_rate, to_rate


# =============================================================================
# SINGLE VALUE CONVERSION
# =============================================================================

def convert(
        value: Decimal,
        from_currency: str,
        to_currency: str,
        rate_table: RateTableProtocol | None = None,
) -> Decimal:
    """
    Convert ``value`` from one currency to another.

    Args:
        value: Amount in from_currency
        from_currency: Source code (case-insensitive)
        to_currency: Target code (case-insensitive)
        rate_table: Rates to use; None means no conversion is possible

    Returns:
        Converted amount, or ``value`` unchanged if conversion is impossible

    Example:
        >>> table  # base usd, twd=30
        >>> convert(Decimal("100"), "USD", "TWD", table)
        Decimal('3000')
        >>> convert(Decimal("3000"), "twd", "usd", table)
        Decimal('100')
    """
    src = normalize_currency(from_currency)
    dst = normalize_currency(to_currency)

    if src == dst or rate_table is None:
        return value

    rates = _needed_rates(src, dst, rate_table)
    if rates is None:
        logger.debug(f"No usable rate for {src}->{dst}, keeping value unconverted")
        return value

    from_rate, to_rate = rates
    return value / from_rate * to_rate


def can_convert(
        from_currency: str,
        to_currency: str,
        rate_table: RateTableProtocol | None = None,
) -> bool:
    """
    Whether ``convert`` would actually convert for this pair.

    Same currency is always convertible. Otherwise a table is needed,
    both rates must be present and the source rate must be positive.
    """
    src = normalize_currency(from_currency)
    dst = normalize_currency(to_currency)
    if src == dst:
        return True
    if rate_table is None:
        return False
    return _needed_rates(src, dst, rate_table) is not None


# =============================================================================
# AGGREGATES
# =============================================================================

def _item_currency(item: ValuedItemProtocol) -> str | None:
    asset = item.asset
    return asset.currency if asset is not None else None


def total_value(
        asset_values: Iterable[ValuedItemProtocol],
        display_currency: str,
        rate_table: RateTableProtocol | None = None,
) -> Decimal:
    """
    Sum of market values converted into the display currency.

    Works for direct snapshot values and for carry-forward composites alike.
    """
    total = ZERO
    for item in asset_values:
        currency = effective_currency(_item_currency(item), display_currency)
        total += convert(item.market_value, currency, display_currency, rate_table)
    return total


def net_cash_flow(
        operations: Iterable[CashFlowOperation],
        display_currency: str,
        rate_table: RateTableProtocol | None = None,
) -> Decimal:
    """Signed sum of cash-flow amounts converted into the display currency."""
    total = ZERO
    for operation in operations:
        currency = effective_currency(operation.currency, display_currency)
        total += convert(operation.amount, currency, display_currency, rate_table)
    return total


def category_values(
        asset_values: Iterable[ValuedItemProtocol],
        display_currency: str,
        rate_table: RateTableProtocol | None = None,
) -> dict[str, Decimal]:
    """
    Converted market values grouped by category name.

    Assets without a category are grouped under the empty-string key.
    """
    result: dict[str, Decimal] = {}
    for item in asset_values:
        asset = item.asset
        category = asset.category if asset is not None else None
        key = category.name if category is not None else UNCATEGORIZED_KEY
        currency = effective_currency(_item_currency(item), display_currency)
        converted = convert(item.market_value, currency, display_currency, rate_table)
        result[key] = result.get(key, ZERO) + converted
    return result


# =============================================================================
# SNAPSHOT CONVENIENCE
# =============================================================================

def snapshot_total_value(snapshot: Snapshot, display_currency: str) -> Decimal:
    """Direct (non carried-forward) total of a snapshot using its own rate table."""
    return total_value(snapshot.asset_values, display_currency, snapshot.exchange_rate)


def snapshot_net_cash_flow(snapshot: Snapshot, display_currency: str) -> Decimal:
    """Net cash flow of a snapshot using its own rate table."""
    return net_cash_flow(snapshot.cash_flow_operations, display_currency, snapshot.exchange_rate)


def unconvertible_currencies(
        asset_values: Iterable[ValuedItemProtocol],
        display_currency: str,
        rate_table: RateTableProtocol | None = None,
) -> set[str]:
    """Currencies among ``asset_values`` that would be left unconverted."""
    missing = set()
    for item in asset_values:
        currency = effective_currency(_item_currency(item), display_currency)
        if not can_convert(currency, display_currency, rate_table):
            missing.add(currency)
    return missing
