# portfolio_tracker/services/exchange_rates/provider.py
"""
Exchange-rate fetch providers.

Providers return a rate table for a base currency on a date, as a dict of
lowercase code → Decimal with the convention "1 base = rate × code".

Error contract:
    NetworkUnavailableError   transient (connection, timeout, 5xx); retried
    RatesNotFoundError        nothing published for that date (404)
    InvalidResponseError      response could not be parsed

The only concrete provider targets the free date-addressed currency API
(https://github.com/fawazahmed0/exchange-api). Its URL is configurable.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import date
from decimal import Decimal
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from portfolio_tracker.schemas.exchange_rates import RatesPayload
from portfolio_tracker.services.constants import (
    LATEST_RATES_DATE,
    RATES_MAX_RETRY_ATTEMPTS,
    RATES_RETRY_MAX_WAIT,
    RATES_RETRY_MIN_WAIT,
)
from portfolio_tracker.services.exceptions import (
    InvalidResponseError,
    NetworkUnavailableError,
    RatesNotFoundError,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ExchangeRateProvider(ABC):
    """
    Abstract base class for exchange-rate providers.

    Subclasses implement ``_fetch``; callers use ``fetch_rates``, which
    wraps it in exponential-backoff retries for NetworkUnavailableError.

    Retry configuration (class attributes, overridable per subclass or instance):
        - MAX_RETRY_ATTEMPTS: Total attempts (default: 3)
        - RETRY_MIN_WAIT: Minimum wait in seconds (default: 1)
        - RETRY_MAX_WAIT: Maximum wait in seconds (default: 10)
        - RETRY_MULTIPLIER: Exponential multiplier (default: 1)
    """

    MAX_RETRY_ATTEMPTS: int = RATES_MAX_RETRY_ATTEMPTS
    RETRY_MIN_WAIT: int = RATES_RETRY_MIN_WAIT
    RETRY_MAX_WAIT: int = RATES_RETRY_MAX_WAIT
    RETRY_MULTIPLIER: int = 1

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier for logs."""
        pass

    @abstractmethod
    def _fetch(self, rate_date: date | None, base_currency: str) -> dict[str, Decimal]:
        """Fetch once, raising the ExchangeRateError subclasses above."""
        pass

    def fetch_rates(self, rate_date: date | None, base_currency: str) -> dict[str, Decimal]:
        """
        Fetch the rate table for ``base_currency`` on ``rate_date``.

        Args:
            rate_date: Date of the rates; None for the latest available
            base_currency: Base code (case-insensitive)

        Returns:
            Rates keyed by lowercase code

        Raises:
            NetworkUnavailableError: After all retries failed
            RatesNotFoundError: No rates for that date
            InvalidResponseError: Unparseable response
        """
        return self._execute_with_retry(self._fetch, rate_date, base_currency)

    def _execute_with_retry(
            self,
            func: Callable[..., T],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Execute a function with retry logic for transient failures.

        Only NetworkUnavailableError is retried. RatesNotFoundError and
        InvalidResponseError are permanent for a given request.

        Raises:
            The last exception if all retries fail
        """

        @retry(
            stop=stop_after_attempt(self.MAX_RETRY_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type(NetworkUnavailableError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        def _inner() -> T:
            return func(*args, **kwargs)

        return _inner()


class CurrencyApiProvider(ExchangeRateProvider):
    """
    Provider for the date-addressed currency API served from jsDelivr.

    Usage:
        provider = CurrencyApiProvider(settings.rates_api_url, settings.rates_timeout_seconds)
        rates = provider.fetch_rates(date(2024, 3, 6), "USD")
        rates["eur"]  # Decimal('0.9213')

    A custom ``client`` (e.g. with httpx.MockTransport) can be injected.
    """

    def __init__(
            self,
            url_template: str,
            timeout: float = 10.0,
            client: httpx.Client | None = None,
    ) -> None:
        self.url_template = url_template
        self.timeout = timeout
        self._client = client

    @property
    def name(self) -> str:
        return "currency-api"

    def build_url(self, rate_date: date | None, base_currency: str) -> str:
        date_segment = rate_date.isoformat() if rate_date else LATEST_RATES_DATE
        return self.url_template.format(date=date_segment, base=base_currency.strip().lower())

    def _get(self, url: str) -> httpx.Response:
        if self._client is not None:
            return self._client.get(url, timeout=self.timeout)
        with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
            return client.get(url)

    def _fetch(self, rate_date: date | None, base_currency: str) -> dict[str, Decimal]:
        url = self.build_url(rate_date, base_currency)
        logger.debug(f"Fetching rates: {url}")

        try:
            response = self._get(url)
        except httpx.TimeoutException as e:
            raise NetworkUnavailableError(f"timeout: {e}", base_currency, rate_date)
        except httpx.RequestError as e:
            raise NetworkUnavailableError(str(e) or type(e).__name__, base_currency, rate_date)

        if response.status_code == 404:
            raise RatesNotFoundError(base_currency, rate_date)
        if response.status_code >= 500:
            raise NetworkUnavailableError(f"HTTP {response.status_code}", base_currency, rate_date)
        if response.status_code != 200:
            raise InvalidResponseError(f"HTTP {response.status_code}", base_currency, rate_date)

        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponseError(f"body is not JSON: {e}", base_currency, rate_date)

        if not isinstance(data, dict):
            raise InvalidResponseError("body is not a JSON object", base_currency, rate_date)

        try:
            payload = RatesPayload.from_api(data, base_currency)
        except PydanticValidationError as e:
            raise InvalidResponseError(
                f"{e.error_count()} validation error(s)", base_currency, rate_date
            )

        logger.debug(f"Fetched {len(payload.rates)} {payload.base_currency} rates for {payload.date}")
        return payload.rates
