# portfolio_tracker/services/exchange_rates/service.py
"""
Attach exchange-rate tables to snapshots.

Each snapshot carries at most one rate table, fetched for the snapshot's
own date. When the rates service has nothing for that date (weekends on
some mirrors, dates in the future), the latest table is used instead and
flagged ``is_fallback``. A later successful refresh clears the flag.

Fetch failures never propagate: the snapshot keeps whatever table it had
(possibly none) and currency conversion degrades to identity.
"""

import logging

from sqlalchemy.orm import Session

from portfolio_tracker.models import ExchangeRate, Snapshot
from portfolio_tracker.services.exceptions import ExchangeRateError, RatesNotFoundError
from portfolio_tracker.services.protocols import ExchangeRateProviderProtocol
from portfolio_tracker.utils.context import correlation_scope

logger = logging.getLogger(__name__)


class ExchangeRateService:
    """
    Usage:
        service = ExchangeRateService(CurrencyApiProvider(settings.rates_api_url))
        table = service.ensure_rates(db, snapshot, "USD")
        db.commit()
    """

    def __init__(self, provider: ExchangeRateProviderProtocol) -> None:
        self._provider = provider

    @staticmethod
    def _is_current(table: ExchangeRate | None, base_currency: str) -> bool:
        return (
            table is not None
            and not table.is_fallback
            and table.base_currency == base_currency.strip().lower()
        )

    def ensure_rates(
            self,
            db: Session,
            snapshot: Snapshot,
            base_currency: str,
            refresh: bool = False,
    ) -> ExchangeRate | None:
        """
        Make sure ``snapshot`` has a rate table for ``base_currency``.

        An exact (non-fallback) table with the same base is kept unless
        ``refresh`` is set. Fallback tables are always retried.

        Args:
            db: Session the snapshot belongs to (flushed, not committed)
            snapshot: Snapshot to attach rates to
            base_currency: Base code, normally the display currency
            refresh: Refetch even if a current table exists

        Returns:
            The attached table, or the previous one (possibly None) on failure
        """
        existing = snapshot.exchange_rate
        if not refresh and self._is_current(existing, base_currency):
            return existing

        with correlation_scope("rates"):
            try:
                rates = self._provider.fetch_rates(snapshot.date, base_currency)
                is_fallback = False
            except RatesNotFoundError:
                logger.warning(
                    f"No {base_currency.upper()} rates for {snapshot.date}, using latest as fallback"
                )
                try:
                    rates = self._provider.fetch_rates(None, base_currency)
                    is_fallback = True
                except ExchangeRateError as e:
                    logger.warning(f"Fallback rate fetch failed for {snapshot.date}: {e}")
                    return existing
            except ExchangeRateError as e:
                logger.warning(f"Rate fetch failed for {snapshot.date}: {e}")
                return existing

            table = existing
            if table is None:
                table = ExchangeRate(base_currency=base_currency, fetch_date=snapshot.date, rates_json={})
                snapshot.exchange_rate = table
                db.add(table)

            table.update_rates(
                rates,
                fetch_date=snapshot.date,
                base_currency=base_currency,
                is_fallback=is_fallback,
            )
            db.flush()

            logger.info(
                f"Attached {len(rates)} {base_currency.upper()} rates to snapshot {snapshot.date}"
                f"{' (fallback)' if is_fallback else ''}"
            )
            return table

    def ensure_all(
            self,
            db: Session,
            snapshots: list[Snapshot],
            base_currency: str,
    ) -> int:
        """
        ensure_rates for every snapshot missing a current table.

        Returns:
            Number of snapshots that now hold a current (non-fallback) table
        """
        current = 0
        for snapshot in snapshots:
            table = self.ensure_rates(db, snapshot, base_currency)
            if self._is_current(table, base_currency):
                current += 1
        return current
