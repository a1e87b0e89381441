# tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite)
- PortfolioBuilder for concise snapshot/asset/category setup
- In-memory rate table and mock rate provider
"""

from datetime import date
from decimal import Decimal
from typing import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from portfolio_tracker.models import (
    Base,
    Asset,
    CashFlowOperation,
    Category,
    ExchangeRate,
    Snapshot,
    SnapshotAssetValue,
)
from portfolio_tracker.services.exceptions import RatesNotFoundError


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db(db_engine) -> Iterator[Session]:
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# RATE TABLES
# =============================================================================

class StaticRateTable:
    """Plain rate table satisfying RateTableProtocol, no database needed."""

    def __init__(self, base_currency: str, rates: dict[str, str | Decimal]):
        self.base_currency = base_currency.lower()
        self._rates = {code.lower(): Decimal(str(value)) for code, value in rates.items()}

    def rate_for(self, currency: str) -> Decimal | None:
        code = currency.strip().lower()
        if code == self.base_currency:
            return Decimal("1")
        return self._rates.get(code)


class MockRateProvider:
    """
    Mock implementation of ExchangeRateProviderProtocol.

    Dates not configured raise RatesNotFoundError; ``latest`` answers
    requests for date None.
    """

    def __init__(self):
        self._by_date: dict[date, dict[str, Decimal]] = {}
        self._errors: dict[date | None, Exception] = {}
        self.latest: dict[str, Decimal] | None = None
        self.calls: list[tuple[date | None, str]] = []

    def add_rates(self, rate_date: date, rates: dict[str, str]) -> None:
        self._by_date[rate_date] = {k: Decimal(v) for k, v in rates.items()}

    def set_latest(self, rates: dict[str, str]) -> None:
        self.latest = {k: Decimal(v) for k, v in rates.items()}

    def add_error(self, rate_date: date | None, error: Exception) -> None:
        self._errors[rate_date] = error

    def fetch_rates(self, rate_date: date | None, base_currency: str) -> dict[str, Decimal]:
        self.calls.append((rate_date, base_currency))
        if rate_date in self._errors:
            raise self._errors[rate_date]
        if rate_date is None:
            if self.latest is None:
                raise RatesNotFoundError(base_currency)
            return dict(self.latest)
        if rate_date not in self._by_date:
            raise RatesNotFoundError(base_currency, rate_date)
        return dict(self._by_date[rate_date])


@pytest.fixture
def rate_provider() -> MockRateProvider:
    return MockRateProvider()


# =============================================================================
# DATA BUILDER
# =============================================================================

class PortfolioBuilder:
    """
    Creates categories, assets and snapshots in a session.

    Usage:
        bonds = builder.category("Bonds", target="40")
        bnd = builder.asset("BND", platform="Broker", category=bonds)
        builder.snapshot(date(2025, 1, 1), {bnd: "1000"}, cash_flows=["100"])
    """

    def __init__(self, db: Session):
        self.db = db

    def category(self, name: str, target: str | None = None, display_order: int = 0) -> Category:
        category = Category(
            name=name,
            target_allocation_percentage=Decimal(target) if target is not None else None,
            display_order=display_order,
        )
        self.db.add(category)
        self.db.flush()
        return category

    def asset(
            self,
            name: str,
            platform: str = "",
            currency: str = "",
            category: Category | None = None,
    ) -> Asset:
        asset = Asset(name=name, platform=platform, currency=currency, category=category)
        self.db.add(asset)
        self.db.flush()
        return asset

    def snapshot(
            self,
            snapshot_date: date,
            values: dict[Asset, str] | None = None,
            cash_flows: list[str | tuple[str, str]] | None = None,
            rates: dict[str, str] | None = None,
            base_currency: str = "usd",
            is_fallback: bool = False,
    ) -> Snapshot:
        snapshot = Snapshot(date=snapshot_date)
        self.db.add(snapshot)

        for asset, value in (values or {}).items():
            self.db.add(SnapshotAssetValue(snapshot=snapshot, asset=asset, market_value=Decimal(value)))

        for flow in cash_flows or []:
            amount, flow_currency = (flow, "") if isinstance(flow, str) else flow
            self.db.add(
                CashFlowOperation(
                    snapshot=snapshot,
                    description="flow",
                    amount=Decimal(amount),
                    currency=flow_currency,
                )
            )

        if rates is not None:
            table = ExchangeRate(base_currency=base_currency, fetch_date=snapshot_date, rates_json={})
            table.update_rates({k: Decimal(v) for k, v in rates.items()}, snapshot_date, is_fallback=is_fallback)
            snapshot.exchange_rate = table

        self.db.flush()
        return snapshot


@pytest.fixture
def builder(db) -> PortfolioBuilder:
    return PortfolioBuilder(db)
