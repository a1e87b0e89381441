# portfolio_tracker/services/rebalancing/calculator.py
"""
Rebalancing calculator.

Compares current category values with their target percentages and
proposes buy/sell adjustments. Pure calculation, nothing is stored.

Formulas (per category with a target):
    current %     = value / total × 100
    target value  = total × target % / 100
    adjustment    = target value - value

Classification:
    |adjustment| < threshold   NO_ACTION
    adjustment > 0             BUY
    otherwise                  SELL

The threshold (default 1 unit of the display currency) keeps rounding
noise out of the suggestions.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from portfolio_tracker.services.constants import (
    CURRENCY_SYMBOLS,
    HUNDRED,
    MATERIALITY_THRESHOLD,
    ZERO,
)

logger = logging.getLogger(__name__)


class RebalancingActionType(str, Enum):
    BUY = "buy"
    SELL = "sell"
    NO_ACTION = "no_action"


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class CategoryPosition:
    """
    Calculator input: one category's current value and optional target.

    Attributes:
        name: Category name
        current_value: Value in the display currency
        target_percentage: 0-100, or None when the category has no target
    """
    name: str
    current_value: Decimal
    target_percentage: Decimal | None = None


@dataclass(frozen=True)
class RebalancingAction:
    """Adjustment for one category. ``adjustment_amount`` is signed."""
    category_name: str
    current_value: Decimal
    current_percentage: Decimal
    target_percentage: Decimal
    adjustment_amount: Decimal
    action: RebalancingActionType


@dataclass(frozen=True)
class MoveSuggestion:
    """
    "Move X from A to B" pairing of a sell with a buy.

    Attributes:
        amount: Amount to move, positive
        from_category: Category to sell
        to_category: Category to buy
        currency: Display currency code used for ``text``
    """
    amount: Decimal
    from_category: str
    to_category: str
    currency: str = "USD"

    @property
    def text(self) -> str:
        return (
            f"Move {format_amount(self.amount, self.currency)} "
            f"from {self.from_category} to {self.to_category}"
        )


# =============================================================================
# FORMATTING
# =============================================================================

def format_amount(amount: Decimal, currency: str) -> str:
    """
    Render an amount for suggestion texts.

    Whole amounts drop the cents: ``$200``, ``$1,250.50``, ``CHF 90``.
    """
    code = currency.strip().upper()
    cents = amount.quantize(Decimal("0.01"))
    if cents == cents.to_integral_value():
        number = f"{cents:,.0f}"
    else:
        number = f"{cents:,.2f}"
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol is not None:
        return f"{symbol}{number}"
    return f"{code} {number}"


# =============================================================================
# CALCULATIONS
# =============================================================================

def classify_adjustment(
        adjustment: Decimal,
        threshold: Decimal = MATERIALITY_THRESHOLD,
) -> RebalancingActionType:
    if abs(adjustment) < threshold:
        return RebalancingActionType.NO_ACTION
    if adjustment > ZERO:
        return RebalancingActionType.BUY
    return RebalancingActionType.SELL


def calculate_adjustments(
        categories: Iterable[CategoryPosition],
        total_value: Decimal,
        threshold: Decimal = MATERIALITY_THRESHOLD,
) -> list[RebalancingAction]:
    """
    Calculate adjustments for every category that has a target.

    Args:
        categories: Current positions (categories without target are skipped)
        total_value: Total portfolio value in the display currency
        threshold: Materiality threshold for NO_ACTION

    Returns:
        Actions sorted by |adjustment| descending (stable for ties),
        or an empty list when total_value <= 0
    """
    if total_value <= ZERO:
        return []

    actions = []
    for category in categories:
        target = category.target_percentage
        if target is None:
            continue

        current_percentage = category.current_value / total_value * HUNDRED
        target_value = total_value * target / HUNDRED
        adjustment = target_value - category.current_value

        actions.append(
            RebalancingAction(
                category_name=category.name,
                current_value=category.current_value,
                current_percentage=current_percentage,
                target_percentage=target,
                adjustment_amount=adjustment,
                action=classify_adjustment(adjustment, threshold),
            )
        )

    actions.sort(key=lambda a: abs(a.adjustment_amount), reverse=True)
    return actions


def summarize_moves(
        actions: Iterable[RebalancingAction],
        currency: str = "USD",
        threshold: Decimal = MATERIALITY_THRESHOLD,
) -> list[MoveSuggestion]:
    """
    Pair sells with buys into "move" suggestions.

    Sells (largest first) are matched greedily against buys (largest
    first). Each pairing moves the lesser of the two remaining amounts.
    Pairings below the threshold are skipped without consuming capacity.

    Example:
        sell A 300, buy B 200, buy C 100
        -> Move 200 from A to B, Move 100 from A to C
    """
    actions = list(actions)
    sells = sorted(
        (a for a in actions if a.action is RebalancingActionType.SELL),
        key=lambda a: abs(a.adjustment_amount),
        reverse=True,
    )
    buys = sorted(
        (a for a in actions if a.action is RebalancingActionType.BUY),
        key=lambda a: a.adjustment_amount,
        reverse=True,
    )
    if not sells or not buys:
        return []

    sell_remaining = [abs(a.adjustment_amount) for a in sells]
    buy_remaining = [a.adjustment_amount for a in buys]

    moves = []
    for sell_index, sell in enumerate(sells):
        for buy_index, buy in enumerate(buys):
            amount = min(sell_remaining[sell_index], buy_remaining[buy_index])
            if amount < threshold:
                continue
            sell_remaining[sell_index] -= amount
            buy_remaining[buy_index] -= amount
            moves.append(
                MoveSuggestion(
                    amount=amount,
                    from_category=sell.category_name,
                    to_category=buy.category_name,
                    currency=currency,
                )
            )

    logger.debug(f"Paired {len(sells)} sells with {len(buys)} buys into {len(moves)} moves")
    return moves
