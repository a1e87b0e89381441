# portfolio_tracker/schemas/exchange_rates.py
"""
Pydantic schemas for exchange-rate payloads.

The rates API answers ``GET .../currencies/{base}.json`` with:

    {"date": "2024-03-06", "usd": {"eur": 0.9213, "twd": 31.6, ...}}

i.e. the rate table sits under a key equal to the (lowercase) base code.
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


class RatesPayload(BaseModel):
    """Validated rate table for one base currency."""

    date: dt.date = Field(..., description="Date the rates were published for")
    base_currency: str = Field(..., min_length=3, description="Base currency, lowercase")
    rates: dict[str, Decimal] = Field(..., description="1 base = X code")

    @field_validator("base_currency")
    @classmethod
    def normalize_base(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("rates")
    @classmethod
    def normalize_rates(cls, v: dict[str, Decimal]) -> dict[str, Decimal]:
        """Lowercase codes and drop non-positive rates (unusable as divisors)."""
        if not v:
            raise ValueError("rate table is empty")
        return {code.strip().lower(): rate for code, rate in v.items() if rate > 0}

    @classmethod
    def from_api(cls, data: dict, base_currency: str) -> "RatesPayload":
        """
        Build from a raw API response.

        Raises:
            pydantic.ValidationError: If the payload is malformed
        """
        base = base_currency.strip().lower()
        return cls(date=data.get("date"), base_currency=base, rates=data.get(base))
