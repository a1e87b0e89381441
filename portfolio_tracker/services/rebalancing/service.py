# portfolio_tracker/services/rebalancing/service.py
"""
Rebalancing view over the latest snapshot.

Builds everything a rebalancing screen shows:
    - suggestion rows for categories with a target
    - rows for categories without a target (name order, case-insensitive)
    - an uncategorized row when uncategorized assets hold value
    - "Move X from A to B" summaries

Values are the latest snapshot's (composite by default) converted into the
display currency with that snapshot's rate table.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from portfolio_tracker.config import Settings, get_settings
from portfolio_tracker.services import currency
from portfolio_tracker.services.analytics.returns import category_allocation
from portfolio_tracker.services.carry_forward import values_by_snapshot
from portfolio_tracker.services.constants import MATERIALITY_THRESHOLD, UNCATEGORIZED_KEY, ZERO
from portfolio_tracker.services.protocols import StorageProtocol
from portfolio_tracker.services.rebalancing.calculator import (
    CategoryPosition,
    MoveSuggestion,
    RebalancingAction,
    RebalancingActionType,
    calculate_adjustments,
    format_amount,
    summarize_moves,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoTargetRow:
    category_name: str
    current_value: Decimal
    current_percentage: Decimal


@dataclass(frozen=True)
class UncategorizedRow:
    current_value: Decimal
    current_percentage: Decimal


@dataclass
class RebalancingView:
    """Result of RebalancingService.build()."""
    display_currency: str
    total_portfolio_value: Decimal = ZERO
    suggestions: list[RebalancingAction] = field(default_factory=list)
    no_target_rows: list[NoTargetRow] = field(default_factory=list)
    uncategorized_row: UncategorizedRow | None = None
    moves: list[MoveSuggestion] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.suggestions and not self.no_target_rows and self.uncategorized_row is None

    @property
    def summary_texts(self) -> list[str]:
        return [move.text for move in self.moves]

    def action_text(self, action: RebalancingAction) -> str:
        """"Buy $200", "Sell $200" or "No action needed"."""
        if action.action is RebalancingActionType.NO_ACTION:
            return "No action needed"
        verb = "Buy" if action.action is RebalancingActionType.BUY else "Sell"
        return f"{verb} {format_amount(abs(action.adjustment_amount), self.display_currency)}"

    @property
    def accounted_value(self) -> Decimal:
        """Targeted + no-target + uncategorized values; equals the total."""
        value = sum((a.current_value for a in self.suggestions), ZERO)
        value += sum((row.current_value for row in self.no_target_rows), ZERO)
        if self.uncategorized_row is not None:
            value += self.uncategorized_row.current_value
        return value


class RebalancingService:
    """
    Usage:
        view = RebalancingService(repository, display_currency="USD").build()
        for text in view.summary_texts:
            print(text)
    """

    def __init__(
            self,
            storage: StorageProtocol,
            display_currency: str,
            use_carry_forward: bool = True,
            threshold: Decimal = MATERIALITY_THRESHOLD,
    ) -> None:
        self._storage = storage
        self.display_currency = display_currency
        self.use_carry_forward = use_carry_forward
        self.threshold = Decimal(threshold)

    @classmethod
    def from_settings(cls, storage: StorageProtocol, settings: Settings | None = None) -> "RebalancingService":
        """Build with display currency, valuation mode and threshold from settings."""
        settings = settings or get_settings()
        return cls(
            storage,
            display_currency=settings.display_currency,
            use_carry_forward=settings.use_carry_forward,
            threshold=Decimal(settings.rebalancing_threshold),
        )

    def build(self) -> RebalancingView:
        view = RebalancingView(display_currency=self.display_currency)

        snapshots = self._storage.all_snapshots()
        if not snapshots:
            return view

        latest = max(snapshots, key=lambda s: s.date)
        if self.use_carry_forward:
            values = values_by_snapshot(snapshots, True)[latest.date]
        else:
            values = list(latest.asset_values)

        rate_table = latest.exchange_rate
        breakdown = currency.category_values(values, self.display_currency, rate_table)
        total = sum(breakdown.values(), ZERO)
        view.total_portfolio_value = total
        if total <= ZERO:
            return view

        categories = self._storage.all_categories()
        uncategorized_value = breakdown.get(UNCATEGORIZED_KEY, ZERO)

        positions = [
            CategoryPosition(
                name=category.name,
                current_value=breakdown.get(category.name, ZERO),
                target_percentage=category.target_allocation_percentage,
            )
            for category in categories
        ]
        view.suggestions = calculate_adjustments(positions, total, self.threshold)

        view.no_target_rows = sorted(
            (
                NoTargetRow(
                    category_name=position.name,
                    current_value=position.current_value,
                    current_percentage=category_allocation(position.current_value, total),
                )
                for position in positions
                if position.target_percentage is None
            ),
            key=lambda row: row.category_name.casefold(),
        )

        if uncategorized_value > ZERO:
            view.uncategorized_row = UncategorizedRow(
                current_value=uncategorized_value,
                current_percentage=category_allocation(uncategorized_value, total),
            )

        view.moves = summarize_moves(view.suggestions, self.display_currency, self.threshold)

        logger.info(
            f"Rebalancing built for {latest.date}: {len(view.suggestions)} targeted, "
            f"{len(view.no_target_rows)} untargeted, {len(view.moves)} moves"
        )
        return view
