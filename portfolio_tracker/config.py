# portfolio_tracker/config.py
"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables prefixed ``PORTFOLIO_``
(and an optional ``.env`` file in the working directory):
- PORTFOLIO_DISPLAY_CURRENCY: Currency all totals are reported in
- PORTFOLIO_LOOKBACK_POLICY: How the begin snapshot of a period is chosen
- PORTFOLIO_DATABASE_URL: Storage connection string (SQLite by default)

Configuration is read once and cached. Calculations never read settings
directly; callers pass the values they need, which keeps every entry
point testable with explicit arguments.

Usage:
    from portfolio_tracker.config import get_settings

    settings = get_settings()
    settings.display_currency  # "USD"
"""
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables:
        - PORTFOLIO_DATABASE_URL: SQLAlchemy URL (default: local SQLite file)
        - PORTFOLIO_LOG_LEVEL / PORTFOLIO_LOG_FORMAT: Logging setup

    Analytics:
        - PORTFOLIO_DISPLAY_CURRENCY: ISO code, stored upper-case (default: USD)
        - PORTFOLIO_LOOKBACK_POLICY: "closest" or "on_or_before" (default: closest)
        - PORTFOLIO_LOOKBACK_MAX_DISTANCE_DAYS: Limit for "on_or_before" (default: 14)
        - PORTFOLIO_USE_CARRY_FORWARD: Composite totals on/off (default: True)
        - PORTFOLIO_REBALANCING_THRESHOLD: Materiality in display currency (default: 1)
    """

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format"
    )

    database_url: str = Field(
        default="sqlite:///portfolio.db",
        description="SQLAlchemy database URL"
    )
    debug: bool = False

    # =========================================================================
    # ANALYTICS
    # =========================================================================
    display_currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="Currency used for all converted totals"
    )
    lookback_policy: Literal["closest", "on_or_before"] = Field(
        default="closest",
        description="Begin-snapshot selection for period returns"
    )
    lookback_max_distance_days: int = Field(
        default=14,
        ge=0,
        le=366,
        description="Max days between lookback target and begin snapshot (on_or_before only)"
    )
    use_carry_forward: bool = Field(
        default=True,
        description="Value snapshots with carried-forward platform values"
    )
    rebalancing_threshold: int = Field(
        default=1,
        ge=0,
        description="Adjustments below this amount are classified as no action"
    )

    # =========================================================================
    # EXCHANGE RATES
    # =========================================================================
    rates_api_url: str = Field(
        default="https://cdn.jsdelivr.net/npm/@fawazahmed0/currency-api@{date}/v1/currencies/{base}.json",
        description="URL template with {date} and {base} placeholders"
    )
    rates_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="HTTP timeout for rate fetches"
    )

    model_config = SettingsConfigDict(
        env_prefix="PORTFOLIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("display_currency", mode="before")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @model_validator(mode="after")
    def validate_rates_url(self) -> "Settings":
        """The rates URL template must carry both placeholders."""
        missing = [p for p in ("{date}", "{base}") if p not in self.rates_api_url]
        if missing:
            raise ValueError(
                f"PORTFOLIO_RATES_API_URL is missing placeholder(s): {', '.join(missing)}"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, built on first use."""
    return Settings()
