# tests/services/rebalancing/test_rebalancing_calculator.py
"""
Unit tests for the rebalancing calculator.

Pure calculation tests, no database.

Test Coverage:
- calculate_adjustments: percentages, signed adjustments, ordering
- classify_adjustment: materiality threshold boundary
- summarize_moves: greedy sell→buy pairing
- format_amount: symbols, codes, cents
"""

from decimal import Decimal

import pytest

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


def _action(name: str, adjustment: str) -> RebalancingAction:
    amount = Decimal(adjustment)
    return RebalancingAction(
        category_name=name,
        current_value=Decimal("0"),
        current_percentage=Decimal("0"),
        target_percentage=Decimal("0"),
        adjustment_amount=amount,
        action=classify_adjustment(amount),
    )


# =============================================================================
# ADJUSTMENT TESTS
# =============================================================================

class TestCalculateAdjustments:
    """Tests for calculate_adjustments function."""

    def test_two_category_example(self):
        """800/200 against 60%/40% targets: sell 200, buy 200."""
        actions = calculate_adjustments(
            [
                CategoryPosition("category1", Decimal("800"), Decimal("60")),
                CategoryPosition("category2", Decimal("200"), Decimal("40")),
            ],
            Decimal("1000"),
        )

        by_name = {a.category_name: a for a in actions}
        assert by_name["category1"].current_percentage == Decimal("80")
        assert by_name["category1"].adjustment_amount == Decimal("-200")
        assert by_name["category1"].action is RebalancingActionType.SELL
        assert by_name["category2"].current_percentage == Decimal("20")
        assert by_name["category2"].adjustment_amount == Decimal("200")
        assert by_name["category2"].action is RebalancingActionType.BUY

    def test_categories_without_target_skipped(self):
        actions = calculate_adjustments(
            [
                CategoryPosition("Stocks", Decimal("500"), Decimal("100")),
                CategoryPosition("Other", Decimal("500")),
            ],
            Decimal("1000"),
        )

        assert [a.category_name for a in actions] == ["Stocks"]

    def test_sorted_by_absolute_adjustment(self):
        actions = calculate_adjustments(
            [
                CategoryPosition("Small", Decimal("290"), Decimal("30")),
                CategoryPosition("Big", Decimal("610"), Decimal("50")),
                CategoryPosition("Mid", Decimal("100"), Decimal("20")),
            ],
            Decimal("1000"),
        )

        assert [a.category_name for a in actions] == ["Big", "Mid", "Small"]

    @pytest.mark.parametrize("total", [Decimal("0"), Decimal("-5")])
    def test_non_positive_total_returns_empty(self, total):
        positions = [CategoryPosition("Stocks", Decimal("0"), Decimal("50"))]
        assert calculate_adjustments(positions, total) == []


# =============================================================================
# THRESHOLD TESTS
# =============================================================================

class TestClassifyAdjustment:
    """Tests for the materiality threshold."""

    @pytest.mark.parametrize("amount", ["0.999", "-0.999", "0.9999999", "0"])
    def test_below_threshold_is_no_action(self, amount):
        assert classify_adjustment(Decimal(amount)) is RebalancingActionType.NO_ACTION

    def test_exactly_one_is_buy(self):
        assert classify_adjustment(Decimal("1.00")) is RebalancingActionType.BUY

    def test_exactly_minus_one_is_sell(self):
        assert classify_adjustment(Decimal("-1.00")) is RebalancingActionType.SELL

    def test_custom_threshold(self):
        assert classify_adjustment(Decimal("5"), Decimal("10")) is RebalancingActionType.NO_ACTION


# =============================================================================
# MOVE SUMMARY TESTS
# =============================================================================

class TestSummarizeMoves:
    """Tests for summarize_moves function."""

    def test_two_category_summary(self):
        moves = summarize_moves([_action("category1", "-200"), _action("category2", "200")])

        assert moves == [MoveSuggestion(Decimal("200"), "category1", "category2", "USD")]
        assert moves[0].text == "Move $200 from category1 to category2"

    def test_one_sell_split_across_buys(self):
        moves = summarize_moves(
            [_action("A", "-300"), _action("C", "100"), _action("B", "200")]
        )

        assert [m.text for m in moves] == [
            "Move $200 from A to B",
            "Move $100 from A to C",
        ]

    def test_two_sells_into_one_buy(self):
        moves = summarize_moves(
            [_action("A", "-100"), _action("B", "-250"), _action("C", "350")]
        )

        assert [(m.from_category, m.to_category, m.amount) for m in moves] == [
            ("B", "C", Decimal("250")),
            ("A", "C", Decimal("100")),
        ]

    def test_immaterial_remainder_not_suggested(self):
        """The last 0.50 of the buy cannot be met by anything material."""
        moves = summarize_moves([_action("A", "-100"), _action("B", "100.50")])

        assert [m.amount for m in moves] == [Decimal("100")]

    def test_no_action_rows_ignored(self):
        moves = summarize_moves([_action("A", "-0.5"), _action("B", "0.5")])
        assert moves == []

    def test_only_buys(self):
        assert summarize_moves([_action("A", "10")]) == []

    def test_currency_in_text(self):
        moves = summarize_moves([_action("A", "-50"), _action("B", "50")], currency="EUR")
        assert moves[0].text == "Move €50 from A to B"


# =============================================================================
# FORMATTING TESTS
# =============================================================================

class TestFormatAmount:

    @pytest.mark.parametrize(
        "amount,currency,expected",
        [
            ("200", "USD", "$200"),
            ("200.00", "usd", "$200"),
            ("1250.5", "USD", "$1,250.50"),
            ("90", "CHF", "CHF 90"),
            ("1000000", "TWD", "NT$1,000,000"),
            ("0.004", "USD", "$0"),
        ],
    )
    def test_format(self, amount, currency, expected):
        assert format_amount(Decimal(amount), currency) == expected
