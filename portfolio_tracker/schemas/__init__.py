# portfolio_tracker/schemas/__init__.py
"""Pydantic schemas for external payloads."""

from portfolio_tracker.schemas.exchange_rates import RatesPayload

__all__ = ["RatesPayload"]
