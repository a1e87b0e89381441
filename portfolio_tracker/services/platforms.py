# portfolio_tracker/services/platforms.py
"""
Platform views.

Platforms are not stored; they are the distinct non-empty ``Asset.platform``
values, compared normalized. The first spelling seen is the one displayed.

Values are converted into the display currency with each snapshot's own
rate table and, by default, include carried-forward platform values.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from portfolio_tracker.models import Asset, Snapshot, normalize_identity
from portfolio_tracker.services import currency
from portfolio_tracker.services.analytics.types import ValuePoint
from portfolio_tracker.services.carry_forward import values_by_snapshot
from portfolio_tracker.services.constants import ZERO

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlatformRow:
    name: str
    asset_count: int
    total_value: Decimal


@dataclass(frozen=True)
class PlatformHolding:
    """An asset on a platform with its latest value (None if never valued)."""
    asset: Asset
    latest_value: Decimal | None


def list_platforms(assets: Iterable[Asset]) -> list[str]:
    """Distinct non-empty platform names, sorted case-insensitively."""
    seen: dict[str, str] = {}
    for asset in assets:
        key = asset.normalized_platform
        if key and key not in seen:
            seen[key] = asset.platform.strip()
    return sorted(seen.values(), key=str.casefold)


def _platform_totals(values: Iterable, display_currency: str, rate_table) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = {}
    for value in values:
        if value.asset is None:
            continue
        key = value.asset.normalized_platform
        item_currency = currency.effective_currency(value.asset.currency, display_currency)
        converted = currency.convert(value.market_value, item_currency, display_currency, rate_table)
        totals[key] = totals.get(key, ZERO) + converted
    return totals


def platform_rows(
        assets: Sequence[Asset],
        snapshots: Sequence[Snapshot],
        display_currency: str,
        use_carry_forward: bool = True,
) -> list[PlatformRow]:
    """
    One row per platform: asset count and total value at the latest snapshot.

    Platforms without value at the latest snapshot show a total of 0.
    """
    latest_totals: dict[str, Decimal] = {}
    if snapshots:
        latest = max(snapshots, key=lambda s: s.date)
        values = values_by_snapshot(snapshots, use_carry_forward)[latest.date]
        latest_totals = _platform_totals(values, display_currency, latest.exchange_rate)

    counts: dict[str, int] = {}
    for asset in assets:
        key = asset.normalized_platform
        if key:
            counts[key] = counts.get(key, 0) + 1

    return [
        PlatformRow(
            name=name,
            asset_count=counts.get(normalize_identity(name), 0),
            total_value=latest_totals.get(normalize_identity(name), ZERO),
        )
        for name in list_platforms(assets)
    ]


def platform_value_history(
        platform: str,
        snapshots: Sequence[Snapshot],
        display_currency: str,
        use_carry_forward: bool = True,
) -> list[ValuePoint]:
    """Total value of ``platform`` at every snapshot, oldest first."""
    key = normalize_identity(platform)
    ordered = sorted(snapshots, key=lambda s: s.date)
    values_by_date = values_by_snapshot(ordered, use_carry_forward)

    history = []
    for snapshot in ordered:
        totals = _platform_totals(values_by_date.get(snapshot.date, []), display_currency, snapshot.exchange_rate)
        history.append(ValuePoint(date=snapshot.date, value=totals.get(key, ZERO)))
    return history


def platform_holdings(
        platform: str,
        assets: Sequence[Asset],
        snapshots: Sequence[Snapshot],
        display_currency: str,
) -> list[PlatformHolding]:
    """
    Assets on ``platform`` with their latest composite value, sorted by name.

    The latest value is taken from the latest snapshot's composite view,
    converted with that snapshot's rate table.
    """
    key = normalize_identity(platform)
    members = [asset for asset in assets if asset.normalized_platform == key]

    latest_values: dict[int, Decimal] = {}
    if snapshots:
        latest = max(snapshots, key=lambda s: s.date)
        for value in values_by_snapshot(snapshots, True)[latest.date]:
            if value.asset is None or value.asset.normalized_platform != key:
                continue
            item_currency = currency.effective_currency(value.asset.currency, display_currency)
            latest_values[value.asset.id] = currency.convert(
                value.market_value, item_currency, display_currency, latest.exchange_rate
            )

    holdings = [PlatformHolding(asset=a, latest_value=latest_values.get(a.id)) for a in members]
    return sorted(holdings, key=lambda h: h.asset.name.casefold())
