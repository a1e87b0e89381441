# tests/schemas/test_rates_payload.py
"""Tests for the RatesPayload schema."""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from portfolio_tracker.schemas.exchange_rates import RatesPayload


class TestRatesPayload:

    def test_from_api(self):
        payload = RatesPayload.from_api(
            {"date": "2024-03-06", "usd": {"EUR": "0.9213", "twd": "31.6"}},
            "USD",
        )

        assert payload.date == date(2024, 3, 6)
        assert payload.base_currency == "usd"
        assert payload.rates == {"eur": Decimal("0.9213"), "twd": Decimal("31.6")}

    def test_non_positive_rates_dropped(self):
        payload = RatesPayload(
            date=date(2024, 3, 6),
            base_currency="usd",
            rates={"eur": Decimal("0.9"), "zero": Decimal("0"), "neg": Decimal("-1")},
        )

        assert payload.rates == {"eur": Decimal("0.9")}

    def test_empty_table_rejected(self):
        with pytest.raises(ValidationError):
            RatesPayload(date=date(2024, 3, 6), base_currency="usd", rates={})

    def test_missing_date_rejected(self):
        with pytest.raises(ValidationError):
            RatesPayload.from_api({"usd": {"eur": "0.9"}}, "usd")

    def test_missing_base_table_rejected(self):
        with pytest.raises(ValidationError):
            RatesPayload.from_api({"date": "2024-03-06"}, "usd")

    def test_short_base_rejected(self):
        with pytest.raises(ValidationError):
            RatesPayload(date=date(2024, 3, 6), base_currency="us", rates={"eur": Decimal("1")})
