# portfolio_tracker/services/carry_forward.py
"""
Carry-forward resolution of composite snapshot values.

Users often update only some platforms on a given day. The composite value
of a snapshot fills the gaps from earlier snapshots, one whole platform at
a time:

    1. Every value entered on the target snapshot is used as is.
    2. Platforms present on the target ("direct platforms") are never
       carried forward.
    3. Earlier snapshots are visited newest first. A platform's values are
       taken from the first (most recent) earlier snapshot that has any
       value for it, and from no other snapshot.

Resolution is platform-granular: if the most recent earlier snapshot of a
platform holds assets A and B, both are carried, even if an older snapshot
also held asset C on that platform. C is not resurrected.

Platform names are compared normalized (trimmed, collapsed whitespace,
lowercased). The empty platform is a platform like any other.

Amounts are in each asset's own currency; conversion happens later.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from portfolio_tracker.models import Asset, Snapshot, SnapshotAssetValue
from portfolio_tracker.services.constants import ZERO

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompositeAssetValue:
    """
    One asset's value as seen from a target snapshot.

    Attributes:
        asset: The asset
        market_value: Value in the asset's own currency
        is_carried_forward: True when taken from an earlier snapshot
        source_snapshot_date: Date of that earlier snapshot (None if direct)
    """
    asset: Asset
    market_value: Decimal
    is_carried_forward: bool = False
    source_snapshot_date: date | None = None


def _group_by_snapshot_date(
        all_asset_values: Iterable[SnapshotAssetValue],
) -> dict[date, list[SnapshotAssetValue]]:
    grouped: dict[date, list[SnapshotAssetValue]] = defaultdict(list)
    for value in all_asset_values:
        if value.snapshot is None or value.asset is None:
            continue
        grouped[value.snapshot.date].append(value)
    return grouped


def _resolve(
        target_date: date,
        prior_dates_desc: list[date],
        values_by_date: dict[date, list[SnapshotAssetValue]],
) -> list[CompositeAssetValue]:
    direct_values = values_by_date.get(target_date, [])
    direct_platforms = {value.asset.normalized_platform for value in direct_values}

    result = [
        CompositeAssetValue(asset=value.asset, market_value=value.market_value)
        for value in direct_values
    ]

    satisfied: set[str] = set()
    for prior_date in prior_dates_desc:
        prior_values = values_by_date.get(prior_date, [])
        for value in prior_values:
            platform = value.asset.normalized_platform
            if platform in direct_platforms or platform in satisfied:
                continue
            result.append(
                CompositeAssetValue(
                    asset=value.asset,
                    market_value=value.market_value,
                    is_carried_forward=True,
                    source_snapshot_date=prior_date,
                )
            )
        # Only after the whole snapshot, so every asset of a platform comes along
        satisfied.update(
            value.asset.normalized_platform
            for value in prior_values
            if value.asset.normalized_platform not in direct_platforms
        )

    return result


def composite_values(
        target: Snapshot,
        all_snapshots: Iterable[Snapshot],
        all_asset_values: Iterable[SnapshotAssetValue] | None = None,
) -> list[CompositeAssetValue]:
    """
    Composite values of ``target``: direct values plus carried-forward platforms.

    Args:
        target: Snapshot to value
        all_snapshots: Every snapshot (any order)
        all_asset_values: Every snapshot value; defaults to the values
                          attached to ``all_snapshots``

    Returns:
        Direct values first (in input order), then carried values
        from the most recent earlier snapshot onward
    """
    snapshots = list(all_snapshots)
    if all_asset_values is None:
        all_asset_values = [value for snapshot in snapshots for value in snapshot.asset_values]

    values_by_date = _group_by_snapshot_date(all_asset_values)
    prior_dates = sorted(
        (snapshot.date for snapshot in snapshots if snapshot.date < target.date),
        reverse=True,
    )
    return _resolve(target.date, prior_dates, values_by_date)


def composite_total_value(
        target: Snapshot,
        all_snapshots: Iterable[Snapshot],
        all_asset_values: Iterable[SnapshotAssetValue] | None = None,
) -> Decimal:
    """Plain sum of composite market values, without currency conversion."""
    values = composite_values(target, all_snapshots, all_asset_values)
    return sum((value.market_value for value in values), ZERO)


def resolve_all(
        all_snapshots: Iterable[Snapshot],
        all_asset_values: Iterable[SnapshotAssetValue] | None = None,
) -> dict[date, list[CompositeAssetValue]]:
    """
    Composite values for every snapshot, keyed by snapshot date.

    Partitions the values once instead of once per snapshot.
    """
    snapshots = sorted(all_snapshots, key=lambda s: s.date)
    if all_asset_values is None:
        all_asset_values = [value for snapshot in snapshots for value in snapshot.asset_values]

    values_by_date = _group_by_snapshot_date(all_asset_values)
    dates = [snapshot.date for snapshot in snapshots]

    resolved = {}
    for index, snapshot_date in enumerate(dates):
        resolved[snapshot_date] = _resolve(snapshot_date, dates[:index][::-1], values_by_date)

    carried = sum(1 for values in resolved.values() for v in values if v.is_carried_forward)
    logger.debug(f"Resolved composite values for {len(dates)} snapshots ({carried} carried)")
    return resolved


def values_by_snapshot(
        all_snapshots: Iterable[Snapshot],
        use_carry_forward: bool = True,
) -> dict[date, list[CompositeAssetValue] | list[SnapshotAssetValue]]:
    """
    Values used to value each snapshot, keyed by snapshot date.

    Composite values when ``use_carry_forward`` is set, otherwise only the
    values entered on each snapshot.
    """
    if use_carry_forward:
        return resolve_all(all_snapshots)
    return {snapshot.date: list(snapshot.asset_values) for snapshot in all_snapshots}
