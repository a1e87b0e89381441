# portfolio_tracker/services/analytics/returns.py
"""
Return calculation functions for the analytics services.

This module contains pure functions for:
- Growth Rate: (End - Begin) / Begin, ignores cash flows
- Modified Dietz Return: cash-flow-adjusted return for one period
- Cumulative Time-Weighted Return: chained period returns
- Compound Annual Growth Rate (CAGR)
- Category Allocation: share of a value in a total, in percent

All functions are stateless. A result that is mathematically undefined
(zero or negative base, empty period) is returned as None, never raised.

Formulas:
    Growth = (EMV - BMV) / BMV

    Modified Dietz:
        w_i = (T - t_i) / T
        R = (EMV - BMV - Σ CF_i) / (BMV + Σ w_i × CF_i)

    TWR = ∏(1 + r_i) - 1

    CAGR = (EMV / BMV)^(1 / years) - 1,  years = days / 365.25

Precision Note:
    Everything is Decimal except the CAGR exponentiation, which is done in
    float and converted back. ~15 significant digits are retained, far
    beyond what a displayed percentage needs.
"""

import logging
import math
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from portfolio_tracker.services.analytics.types import CashFlow
from portfolio_tracker.services.constants import HUNDRED, ONE, ZERO
from portfolio_tracker.utils.date_utils import years_between

logger = logging.getLogger(__name__)


# =============================================================================
# GROWTH RATE
# =============================================================================

def growth_rate(begin_value: Decimal, end_value: Decimal) -> Decimal | None:
    """
    Calculate simple growth between two portfolio values.

    Does not adjust for deposits or withdrawals; see modified_dietz_return.

    Args:
        begin_value: Value at period start
        end_value: Value at period end

    Returns:
        Growth as decimal (0.2 = 20%), or None if begin_value <= 0

    Example:
        >>> growth_rate(Decimal("1000"), Decimal("1200"))
        Decimal('0.2')
    """
    if begin_value <= ZERO:
        return None
    return (end_value - begin_value) / begin_value


# =============================================================================
# MODIFIED DIETZ
# =============================================================================

def modified_dietz_return(
        begin_value: Decimal,
        end_value: Decimal,
        cash_flows: Iterable[CashFlow],
        total_days: int,
) -> Decimal | None:
    """
    Calculate the Modified Dietz return for one period.

    Each cash flow is weighted by the fraction of the period it was
    invested for: w = (total_days - days_since_start) / total_days.
    A flow on the last day has weight 0, a flow on the first day weight 1.

    Args:
        begin_value: Beginning market value (BMV)
        end_value: Ending market value (EMV)
        cash_flows: External flows within the period
        total_days: Length of the period in days

    Returns:
        Return as decimal, or None if BMV <= 0, total_days <= 0,
        or the weighted capital base is not positive

    Example:
        BMV=1000, EMV=1150, +100 on day 15 of 30:
        (1150 - 1000 - 100) / (1000 + 0.5 × 100) = 50 / 1050 ≈ 0.0476
    """
    if begin_value <= ZERO or total_days <= 0:
        return None

    days = Decimal(total_days)
    sum_cf = ZERO
    weighted_cf = ZERO
    for flow in cash_flows:
        weight = (days - Decimal(flow.days_since_start)) / days
        sum_cf += flow.amount
        weighted_cf += weight * flow.amount

    denominator = begin_value + weighted_cf
    if denominator <= ZERO:
        logger.debug(
            f"Modified Dietz undefined: capital base {denominator} "
            f"(BMV={begin_value}, weighted flows={weighted_cf})"
        )
        return None

    return (end_value - begin_value - sum_cf) / denominator


# =============================================================================
# TIME-WEIGHTED RETURN
# =============================================================================

def cumulative_twr(period_returns: Iterable[Decimal | None]) -> Decimal:
    """
    Chain period returns into a cumulative time-weighted return.

    Formula: TWR = (1 + r_1) × (1 + r_2) × ... - 1

    A None entry (an undefined period) is treated as 0, i.e. the chain
    passes through that period unchanged. An empty sequence gives 0.

    Example:
        >>> cumulative_twr([Decimal("0.1"), Decimal("0.2")])
        Decimal('0.32')
    """
    product = ONE
    for period_return in period_returns:
        if period_return is None:
            continue
        product *= ONE + period_return
    return product - ONE


# =============================================================================
# CAGR
# =============================================================================

def cagr(begin_value: Decimal, end_value: Decimal, years: float) -> Decimal | None:
    """
    Calculate Compound Annual Growth Rate.

    Formula: CAGR = (End / Begin)^(1 / years) - 1

    Does not adjust for cash flows.

    Args:
        begin_value: Value at start
        end_value: Value at end
        years: Elapsed years (see cagr_between for dates)

    Returns:
        CAGR as decimal (0.12 = 12%), or None if any input is not positive
        or the annualized figure does not fit in a float (a large gain over
        a few days)
    """
    if begin_value <= ZERO or end_value <= ZERO or years <= 0:
        return None

    ratio = float(end_value / begin_value)
    try:
        result = ratio ** (1.0 / years) - 1.0
    except OverflowError:
        logger.debug(f"CAGR overflow: ratio={ratio}, years={years:.4f}")
        return None
    if not math.isfinite(result):
        return None
    return Decimal(str(result))


def cagr_between(
        begin_value: Decimal,
        end_value: Decimal,
        begin_date: date,
        end_date: date,
) -> Decimal | None:
    """CAGR between two dates, with years = days / 365.25."""
    return cagr(begin_value, end_value, years_between(begin_date, end_date))


# =============================================================================
# ALLOCATION
# =============================================================================

def category_allocation(category_value: Decimal, total_value: Decimal) -> Decimal:
    """
    Share of ``category_value`` in ``total_value``, in percent (0-100).

    Returns 0 when the total is not positive.
    """
    if total_value <= ZERO:
        return ZERO
    return category_value / total_value * HUNDRED
