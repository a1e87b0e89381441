# portfolio_tracker/services/rebalancing/__init__.py
"""
Rebalancing against target category allocations.

Usage:
    from portfolio_tracker.services.rebalancing import RebalancingService

    view = RebalancingService(repository, display_currency="USD").build()
"""

from portfolio_tracker.services.rebalancing.calculator import (
    CategoryPosition,
    MoveSuggestion,
    RebalancingAction,
    RebalancingActionType,
    calculate_adjustments,
    classify_adjustment,
    format_amount,
    summarize_moves,
)
from portfolio_tracker.services.rebalancing.service import (
    NoTargetRow,
    RebalancingService,
    RebalancingView,
    UncategorizedRow,
)

__all__ = [
    "CategoryPosition",
    "MoveSuggestion",
    "RebalancingAction",
    "RebalancingActionType",
    "calculate_adjustments",
    "classify_adjustment",
    "format_amount",
    "summarize_moves",
    "NoTargetRow",
    "RebalancingService",
    "RebalancingView",
    "UncategorizedRow",
]
