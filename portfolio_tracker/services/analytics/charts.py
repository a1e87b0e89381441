# portfolio_tracker/services/analytics/charts.py
"""
Time-range filtering of chart series.

Ranges are measured back from the latest point of the series itself, not
from today, so a portfolio last updated in March still shows a full
"1M" window.
"""

from collections.abc import Sequence
from datetime import date
from enum import Enum
from typing import Protocol, TypeVar

from portfolio_tracker.utils.date_utils import subtract_days, subtract_months


class Dated(Protocol):
    @property
    def date(self) -> date:
        ...


D = TypeVar('D', bound=Dated)


class ChartTimeRange(str, Enum):
    ONE_WEEK = "1W"
    ONE_MONTH = "1M"
    THREE_MONTHS = "3M"
    SIX_MONTHS = "6M"
    ONE_YEAR = "1Y"
    THREE_YEARS = "3Y"
    FIVE_YEARS = "5Y"
    ALL = "All"

    def start_date(self, reference: date) -> date | None:
        """First date inside the range ending at ``reference``; None for ALL."""
        if self is ChartTimeRange.ALL:
            return None
        if self is ChartTimeRange.ONE_WEEK:
            return subtract_days(reference, 7)
        return subtract_months(reference, _RANGE_MONTHS[self])


_RANGE_MONTHS = {
    ChartTimeRange.ONE_MONTH: 1,
    ChartTimeRange.THREE_MONTHS: 3,
    ChartTimeRange.SIX_MONTHS: 6,
    ChartTimeRange.ONE_YEAR: 12,
    ChartTimeRange.THREE_YEARS: 36,
    ChartTimeRange.FIVE_YEARS: 60,
}


def filter_series(items: Sequence[D], time_range: ChartTimeRange) -> list[D]:
    """
    Keep the items dated on or after the range start.

    Order is preserved. An empty input gives an empty list.
    """
    if not items:
        return []
    start = ChartTimeRange(time_range).start_date(max(item.date for item in items))
    if start is None:
        return list(items)
    return [item for item in items if item.date >= start]
