# portfolio_tracker/models.py
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, ForeignKey, Numeric, UniqueConstraint, Boolean, JSON, Integer, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, validates

from portfolio_tracker.services.constants import HUNDRED, ONE, ZERO
from portfolio_tracker.services.exceptions import InvalidTargetAllocationError
from portfolio_tracker.utils.date_utils import to_calendar_date


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def normalize_identity(value: str | None) -> str:
    """
    Normalize a name or platform for identity comparison.

    Trims, collapses whitespace runs to a single space and lowercases:
    "  Interactive   Brokers " -> "interactive brokers".
    """
    if not value:
        return ""
    return " ".join(value.split()).lower()


class Category(Base):
    """
    User-defined asset grouping with an optional target allocation.

    Deleting a category leaves its assets in place, uncategorized.
    """
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, unique=True)
    # Percentage of the portfolio, 0-100. NULL = no target
    target_allocation_percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True, default=None)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # No delete cascade: the ORM nulls Asset.category_id when a category goes away
    assets: Mapped[list["Asset"]] = relationship(back_populates="category")

    @validates("target_allocation_percentage")
    def _validate_target(self, key: str, value: Decimal | None) -> Decimal | None:
        if value is None:
            return None
        value = Decimal(value)
        if value < ZERO or value > HUNDRED:
            raise InvalidTargetAllocationError(value)
        return value


class Asset(Base):
    """
    A holding identified by (normalized name, normalized platform).

    The same instrument held at two brokers is two assets. ``currency`` may be
    empty, meaning "use the display currency". ``platform`` may be empty.
    """
    __tablename__ = "assets"
    __table_args__ = (
        UniqueConstraint('identity_key', name='uq_asset_identity'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String)
    platform: Mapped[str] = mapped_column(String, default="")
    currency: Mapped[str] = mapped_column(String, default="")
    # "name|platform", both normalized. Maintained by the validators below
    identity_key: Mapped[str] = mapped_column(String, index=True)
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True, default=None
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    category: Mapped["Category | None"] = relationship(back_populates="assets")
    values: Mapped[list["SnapshotAssetValue"]] = relationship(
        back_populates="asset",
        cascade="all, delete-orphan"
    )

    @validates("name", "platform")
    def _track_identity(self, key: str, value: str | None) -> str:
        value = value or ""
        name = value if key == "name" else (self.name or "")
        platform = value if key == "platform" else (self.platform or "")
        self.identity_key = self.make_identity_key(name, platform)
        return value

    @staticmethod
    def make_identity_key(name: str, platform: str) -> str:
        return f"{normalize_identity(name)}|{normalize_identity(platform)}"

    @property
    def normalized_name(self) -> str:
        return normalize_identity(self.name)

    @property
    def normalized_platform(self) -> str:
        return normalize_identity(self.platform)

    @property
    def normalized_identity(self) -> tuple[str, str]:
        return self.normalized_name, self.normalized_platform

    def __repr__(self) -> str:
        return f"Asset(name={self.name!r}, platform={self.platform!r}, currency={self.currency!r})"


class Snapshot(Base):
    """
    Portfolio state recorded on one calendar date.

    At most one snapshot per date. A snapshot may hold values for only some
    platforms; the rest are carried forward from earlier snapshots.
    """
    __tablename__ = "snapshots"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    date: Mapped[date] = mapped_column(Date, unique=True, index=True)  # Day granularity - no time component
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    asset_values: Mapped[list["SnapshotAssetValue"]] = relationship(
        back_populates="snapshot",
        cascade="all, delete-orphan"
    )
    cash_flow_operations: Mapped[list["CashFlowOperation"]] = relationship(
        back_populates="snapshot",
        cascade="all, delete-orphan"
    )
    exchange_rate: Mapped["ExchangeRate | None"] = relationship(
        back_populates="snapshot",
        uselist=False,  # One-to-one relationship
        cascade="all, delete-orphan"
    )

    @validates("date")
    def _truncate_date(self, key, value):
        # Unannotated: inside this class body ``date`` is the column
        return to_calendar_date(value)

    def __repr__(self) -> str:
        return f"Snapshot(date={self.date})"


class SnapshotAssetValue(Base):
    """Market value of one asset as entered on one snapshot."""
    __tablename__ = "snapshot_asset_values"
    __table_args__ = (
        UniqueConstraint('snapshot_id', 'asset_id', name='uq_snapshot_asset'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    snapshot_id: Mapped[int] = mapped_column(ForeignKey("snapshots.id", ondelete="CASCADE"), index=True)
    asset_id: Mapped[int] = mapped_column(ForeignKey("assets.id", ondelete="CASCADE"), index=True)
    # In the asset's own currency
    market_value: Mapped[Decimal] = mapped_column(Numeric(18, 8))

    snapshot: Mapped["Snapshot"] = relationship(back_populates="asset_values")
    asset: Mapped["Asset"] = relationship(back_populates="values")


class CashFlowOperation(Base):
    """
    External money movement recorded with a snapshot.

    Positive amount = money added to the portfolio, negative = withdrawn.
    Empty currency means the display currency.
    """
    __tablename__ = "cash_flow_operations"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    snapshot_id: Mapped[int] = mapped_column(ForeignKey("snapshots.id", ondelete="CASCADE"), index=True)
    description: Mapped[str] = mapped_column(String, default="")
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    currency: Mapped[str] = mapped_column(String, default="")

    snapshot: Mapped["Snapshot"] = relationship(back_populates="cash_flow_operations")


class ExchangeRate(Base):
    """
    Rate table attached to a snapshot.

    Convention: ``rates[code]`` is how many units of ``code`` one unit of
    ``base_currency`` buys. Codes are stored lowercase, values as decimal
    strings to keep full precision through JSON.

    ``is_fallback`` marks a table fetched as "latest" because the snapshot's
    own date had no published rates.
    """
    __tablename__ = "exchange_rates"
    __table_args__ = (
        Index('ix_exchange_rate_base_fetch', 'base_currency', 'fetch_date'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    snapshot_id: Mapped[int | None] = mapped_column(
        ForeignKey("snapshots.id", ondelete="CASCADE"), unique=True, nullable=True
    )
    base_currency: Mapped[str] = mapped_column(String(10))
    fetch_date: Mapped[date] = mapped_column(Date)
    is_fallback: Mapped[bool] = mapped_column(Boolean, default=False)
    rates_json: Mapped[dict[str, str]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    snapshot: Mapped["Snapshot | None"] = relationship(back_populates="exchange_rate")

    @validates("base_currency")
    def _lower_base(self, key: str, value: str) -> str:
        return value.strip().lower()

    @property
    def rates(self) -> dict[str, Decimal]:
        """Rates keyed by lowercase currency code."""
        return {code: Decimal(str(value)) for code, value in (self.rates_json or {}).items()}

    def rate_for(self, currency: str) -> Decimal | None:
        """
        Rate of ``currency`` relative to the base currency.

        The base currency itself is always 1. Unknown codes return None.
        """
        code = currency.strip().lower()
        if code == self.base_currency:
            return ONE
        raw = (self.rates_json or {}).get(code)
        if raw is None:
            return None
        return Decimal(str(raw))

    def update_rates(
            self,
            rates: dict[str, Decimal],
            fetch_date: date,
            base_currency: str | None = None,
            is_fallback: bool = False,
    ) -> None:
        """Replace the rate data. Clears the fallback flag unless told otherwise."""
        if base_currency is not None:
            self.base_currency = base_currency
        self.rates_json = {code.lower(): str(value) for code, value in rates.items()}
        self.fetch_date = fetch_date
        self.is_fallback = is_fallback

    def __repr__(self) -> str:
        return (
            f"ExchangeRate(base={self.base_currency!r}, fetch_date={self.fetch_date}, "
            f"rates={len(self.rates_json or {})}, fallback={self.is_fallback})"
        )
