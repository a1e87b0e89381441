# tests/utils/test_date_utils.py
"""Tests for calendar-day helpers."""

from datetime import date, datetime

import pytest

from portfolio_tracker.utils.date_utils import (
    days_between,
    subtract_days,
    subtract_months,
    to_calendar_date,
    years_between,
)


class TestSubtractMonths:

    @pytest.mark.parametrize(
        "start,months,expected",
        [
            (date(2023, 3, 31), 1, date(2023, 2, 28)),
            (date(2024, 3, 31), 1, date(2024, 2, 29)),
            (date(2024, 5, 31), 1, date(2024, 4, 30)),
            (date(2024, 1, 15), 1, date(2023, 12, 15)),
            (date(2024, 1, 15), 12, date(2023, 1, 15)),
            (date(2024, 2, 29), 12, date(2023, 2, 28)),
            (date(2024, 8, 31), 6, date(2024, 2, 29)),
            (date(2024, 1, 31), 0, date(2024, 1, 31)),
            (date(2024, 1, 31), -1, date(2024, 2, 29)),
        ],
    )
    def test_subtract_months(self, start, months, expected):
        assert subtract_months(start, months) == expected


class TestDayHelpers:

    def test_subtract_days(self):
        assert subtract_days(date(2024, 3, 1), 1) == date(2024, 2, 29)

    def test_days_between_is_signed(self):
        assert days_between(date(2024, 1, 1), date(2024, 2, 1)) == 31
        assert days_between(date(2024, 2, 1), date(2024, 1, 1)) == -31

    def test_years_between_uses_average_year(self):
        assert years_between(date(2020, 1, 1), date(2024, 1, 1)) == 4.0
        assert years_between(date(2023, 1, 1), date(2024, 1, 1)) == pytest.approx(365 / 365.25)

    def test_to_calendar_date(self):
        assert to_calendar_date(datetime(2024, 3, 1, 23, 59, 59)) == date(2024, 3, 1)
        assert to_calendar_date(date(2024, 3, 1)) == date(2024, 3, 1)
        assert type(to_calendar_date(datetime(2024, 3, 1, 12))) is date
