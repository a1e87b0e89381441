# portfolio_tracker/services/repository.py
"""
SQLAlchemy-backed storage for the analytics services.

Read-only: the analytics core never writes. Relationships needed to value
a snapshot are eager-loaded so a dashboard build runs a fixed number of
queries regardless of history length.
"""

import logging
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from portfolio_tracker.models import (
    Asset,
    CashFlowOperation,
    Category,
    Snapshot,
    SnapshotAssetValue,
)
from portfolio_tracker.services.exceptions import SnapshotNotFoundError
from portfolio_tracker.utils.date_utils import to_calendar_date

logger = logging.getLogger(__name__)


class SnapshotRepository:
    """Implements StorageProtocol over a Session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _snapshot_query(self):
        return (
            select(Snapshot)
            .options(
                selectinload(Snapshot.asset_values)
                .selectinload(SnapshotAssetValue.asset)
                .selectinload(Asset.category),
                selectinload(Snapshot.cash_flow_operations),
                selectinload(Snapshot.exchange_rate),
            )
        )

    def all_snapshots(self) -> list[Snapshot]:
        """All snapshots, oldest first, with values and rate tables loaded."""
        snapshots = list(self.db.scalars(self._snapshot_query().order_by(Snapshot.date)))
        logger.debug(f"Loaded {len(snapshots)} snapshots")
        return snapshots

    def all_asset_values(self) -> list[SnapshotAssetValue]:
        stmt = (
            select(SnapshotAssetValue)
            .join(SnapshotAssetValue.snapshot)
            .options(
                selectinload(SnapshotAssetValue.asset).selectinload(Asset.category),
            )
            .order_by(Snapshot.date, SnapshotAssetValue.id)
        )
        return list(self.db.scalars(stmt))

    def all_cash_flows(self) -> list[CashFlowOperation]:
        stmt = (
            select(CashFlowOperation)
            .join(CashFlowOperation.snapshot)
            .order_by(Snapshot.date, CashFlowOperation.id)
        )
        return list(self.db.scalars(stmt))

    def all_categories(self) -> list[Category]:
        """Categories in display order, then by name."""
        stmt = (
            select(Category)
            .options(selectinload(Category.assets))
            .order_by(Category.display_order, Category.name)
        )
        return list(self.db.scalars(stmt))

    def all_assets(self) -> list[Asset]:
        stmt = select(Asset).options(selectinload(Asset.category)).order_by(Asset.name, Asset.platform)
        return list(self.db.scalars(stmt))

    def latest_snapshot(self) -> Snapshot | None:
        stmt = self._snapshot_query().order_by(Snapshot.date.desc()).limit(1)
        return self.db.scalars(stmt).first()

    def snapshot_on(self, snapshot_date: date | datetime) -> Snapshot | None:
        stmt = self._snapshot_query().where(Snapshot.date == to_calendar_date(snapshot_date))
        return self.db.scalars(stmt).first()

    def get_snapshot(self, snapshot_date: date | datetime) -> Snapshot:
        """
        Like snapshot_on, but raises.

        Raises:
            SnapshotNotFoundError: If no snapshot exists on that date
        """
        snapshot = self.snapshot_on(snapshot_date)
        if snapshot is None:
            raise SnapshotNotFoundError(to_calendar_date(snapshot_date))
        return snapshot

    def find_asset(self, name: str, platform: str = "") -> Asset | None:
        """Look up an asset by normalized (name, platform) identity."""
        key = Asset.make_identity_key(name, platform)
        return self.db.scalars(select(Asset).where(Asset.identity_key == key)).first()
