# portfolio_tracker/services/protocols.py
"""
Protocol interfaces for service dependency injection.

Using typing.Protocol enables structural subtyping:
- SQLAlchemy models satisfy the value protocols without modification
- Test doubles work without explicit inheritance
- Clear documentation of what each collaborator must provide
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from portfolio_tracker.models import (
        Asset,
        CashFlowOperation,
        Category,
        Snapshot,
        SnapshotAssetValue,
    )


class RateTableProtocol(Protocol):
    """A rate table: ``rate_for(code)`` units of code per one base unit."""

    base_currency: str

    def rate_for(self, currency: str) -> Decimal | None:
        ...


class ValuedItemProtocol(Protocol):
    """Anything carrying an asset and a market value in that asset's currency."""

    @property
    def asset(self) -> Asset | None:
        ...

    @property
    def market_value(self) -> Decimal:
        ...


class StorageProtocol(Protocol):
    """Read access to persisted portfolio data, required by the analytics services."""

    def all_snapshots(self) -> list[Snapshot]:
        """All snapshots in ascending date order."""
        ...

    def all_asset_values(self) -> list[SnapshotAssetValue]:
        ...

    def all_cash_flows(self) -> list[CashFlowOperation]:
        ...

    def all_categories(self) -> list[Category]:
        ...

    def all_assets(self) -> list[Asset]:
        ...

    def latest_snapshot(self) -> Snapshot | None:
        ...

    def snapshot_on(self, snapshot_date: date) -> Snapshot | None:
        ...


class ExchangeRateProviderProtocol(Protocol):
    """Interface required by ExchangeRateService."""

    def fetch_rates(self, rate_date: date | None, base_currency: str) -> dict[str, Decimal]:
        """
        Fetch rates for ``rate_date`` (None = latest) keyed by lowercase code.

        Raises:
            NetworkUnavailableError, InvalidResponseError, RatesNotFoundError
        """
        ...


class InvalidationTargetProtocol(Protocol):
    """Receiver of change notifications (see database.watch_session)."""

    def mark_dirty(self, reason: str = "") -> None:
        ...
