# tests/services/test_models.py
"""
Tests for model-level rules.

Test Coverage:
- Asset identity normalization and uniqueness
- Category target validation and deletion
- Snapshot date truncation and uniqueness
- ExchangeRate table accessors
"""

from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from portfolio_tracker.models import (
    Asset,
    CashFlowOperation,
    Category,
    ExchangeRate,
    Snapshot,
    SnapshotAssetValue,
    normalize_identity,
)
from portfolio_tracker.services.exceptions import InvalidTargetAllocationError, ValidationError


# =============================================================================
# ASSET IDENTITY TESTS
# =============================================================================

class TestAssetIdentity:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("  Interactive   Brokers ", "interactive brokers"),
            ("VTI", "vti"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_normalize_identity(self, raw, expected):
        assert normalize_identity(raw) == expected

    def test_identity_key_follows_name_and_platform(self):
        asset = Asset(name=" VTI ", platform="Broker  A")

        assert asset.identity_key == "vti|broker a"
        assert asset.normalized_identity == ("vti", "broker a")

        asset.platform = "Bank"
        assert asset.identity_key == "vti|bank"

    def test_same_name_on_two_platforms_is_allowed(self, db, builder):
        builder.asset("VTI", platform="Broker A")
        builder.asset("VTI", platform="Broker B")

        assert db.query(Asset).count() == 2

    def test_duplicate_normalized_identity_rejected(self, db, builder):
        builder.asset("VTI", platform="Broker")

        with pytest.raises(IntegrityError):
            builder.asset(" vti ", platform="BROKER")


# =============================================================================
# CATEGORY TESTS
# =============================================================================

class TestCategory:

    @pytest.mark.parametrize("target", ["-0.01", "100.01", "250"])
    def test_target_outside_range_rejected(self, target):
        with pytest.raises(InvalidTargetAllocationError) as exc_info:
            Category(name="Bonds", target_allocation_percentage=Decimal(target))

        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.field == "target_allocation_percentage"

    @pytest.mark.parametrize("target", ["0", "40", "100"])
    def test_target_inside_range_accepted(self, target):
        category = Category(name="Bonds", target_allocation_percentage=Decimal(target))
        assert category.target_allocation_percentage == Decimal(target)

    def test_no_target(self):
        assert Category(name="Bonds").target_allocation_percentage is None

    def test_delete_category_uncategorizes_assets(self, db, builder):
        bonds = builder.category("Bonds")
        asset = builder.asset("BND", category=bonds)

        db.delete(bonds)
        db.flush()
        db.refresh(asset)

        assert asset.category_id is None
        assert asset.category is None
        assert db.get(Asset, asset.id) is not None


# =============================================================================
# SNAPSHOT TESTS
# =============================================================================

class TestSnapshot:

    def test_datetime_truncated_to_date(self):
        snapshot = Snapshot(date=datetime(2024, 3, 1, 18, 30))
        assert snapshot.date == date(2024, 3, 1)

    def test_one_snapshot_per_date(self, builder):
        builder.snapshot(date(2024, 3, 1))

        with pytest.raises(IntegrityError):
            builder.snapshot(date(2024, 3, 1))

    def test_delete_snapshot_removes_values(self, db, builder):
        asset = builder.asset("A")
        snapshot = builder.snapshot(date(2024, 3, 1), {asset: "10"}, cash_flows=["5"], rates={"eur": "0.9"})

        db.delete(snapshot)
        db.flush()

        assert db.query(ExchangeRate).count() == 0
        assert db.query(SnapshotAssetValue).count() == 0
        assert db.query(CashFlowOperation).count() == 0
        assert db.get(Asset, asset.id) is not None


# =============================================================================
# EXCHANGE RATE TESTS
# =============================================================================

class TestExchangeRate:

    def test_rate_for_base_is_one(self):
        table = ExchangeRate(base_currency="USD", fetch_date=date(2024, 1, 1), rates_json={})
        assert table.base_currency == "usd"
        assert table.rate_for("usd") == Decimal("1")

    def test_update_rates_lowercases_and_keeps_precision(self):
        table = ExchangeRate(base_currency="usd", fetch_date=date(2024, 1, 1), rates_json={})

        table.update_rates({"EUR": Decimal("0.92134567")}, date(2024, 1, 2), is_fallback=True)

        assert table.rates_json == {"eur": "0.92134567"}
        assert table.rate_for("EUR") == Decimal("0.92134567")
        assert table.rates == {"eur": Decimal("0.92134567")}
        assert table.fetch_date == date(2024, 1, 2)
        assert table.is_fallback

    def test_update_rates_clears_fallback_by_default(self):
        table = ExchangeRate(base_currency="usd", fetch_date=date(2024, 1, 1), rates_json={}, is_fallback=True)

        table.update_rates({"eur": Decimal("0.9")}, date(2024, 1, 1))

        assert not table.is_fallback

    def test_unknown_code(self):
        table = ExchangeRate(base_currency="usd", fetch_date=date(2024, 1, 1), rates_json={"eur": "0.9"})
        assert table.rate_for("chf") is None

    def test_rates_survive_database_round_trip(self, db, builder):
        snapshot = builder.snapshot(date(2024, 1, 1), rates={"twd": "31.6125"})
        db.expire_all()

        reloaded = db.get(Snapshot, snapshot.id)
        assert reloaded.exchange_rate.rate_for("TWD") == Decimal("31.6125")
