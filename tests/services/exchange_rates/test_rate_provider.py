# tests/services/exchange_rates/test_rate_provider.py
"""
Tests for CurrencyApiProvider.

HTTP is served by httpx.MockTransport; retry waits are zeroed per
instance so the retry tests run instantly.

Test Coverage:
- URL building (dated and latest)
- Successful parse into lowercase Decimal rates
- Error mapping: 404, 5xx, other status, timeouts, bad payloads
- Retry behaviour for transient failures only
"""

from datetime import date
from decimal import Decimal

import httpx
import pytest

from portfolio_tracker.services.exceptions import (
    ExchangeRateError,
    InvalidResponseError,
    NetworkUnavailableError,
    RatesNotFoundError,
)
from portfolio_tracker.services.exchange_rates.provider import CurrencyApiProvider

URL_TEMPLATE = "https://rates.test/{date}/currencies/{base}.json"


def make_provider(handler) -> CurrencyApiProvider:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    provider = CurrencyApiProvider(URL_TEMPLATE, timeout=1.0, client=client)
    provider.RETRY_MIN_WAIT = 0
    provider.RETRY_MAX_WAIT = 0
    return provider


class RecordingHandler:
    """Returns queued responses in order and records requested URLs."""

    def __init__(self, *responses):
        self._responses = list(responses)
        self.urls: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.urls.append(str(request.url))
        response = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def ok(body) -> httpx.Response:
    return httpx.Response(200, json=body)


# =============================================================================
# URL TESTS
# =============================================================================

class TestBuildUrl:

    def test_dated_url(self):
        provider = CurrencyApiProvider(URL_TEMPLATE)
        assert provider.build_url(date(2024, 3, 6), "USD") == "https://rates.test/2024-03-06/currencies/usd.json"

    def test_latest_url(self):
        provider = CurrencyApiProvider(URL_TEMPLATE)
        assert provider.build_url(None, "eur") == "https://rates.test/latest/currencies/eur.json"


# =============================================================================
# SUCCESS TESTS
# =============================================================================

class TestFetchRates:

    def test_parses_rates(self):
        handler = RecordingHandler(ok({"date": "2024-03-06", "usd": {"EUR": 0.9213, "twd": 31.6}}))
        provider = make_provider(handler)

        rates = provider.fetch_rates(date(2024, 3, 6), "USD")

        assert rates == {"eur": Decimal("0.9213"), "twd": Decimal("31.6")}
        assert handler.urls == ["https://rates.test/2024-03-06/currencies/usd.json"]

    def test_drops_non_positive_rates(self):
        provider = make_provider(RecordingHandler(ok({"date": "2024-03-06", "usd": {"eur": 0.9, "bad": 0}})))

        assert provider.fetch_rates(date(2024, 3, 6), "usd") == {"eur": Decimal("0.9")}

    def test_provider_name(self):
        assert CurrencyApiProvider(URL_TEMPLATE).name == "currency-api"


# =============================================================================
# ERROR MAPPING TESTS
# =============================================================================

class TestErrorMapping:

    def test_404_is_rates_not_found(self):
        handler = RecordingHandler(httpx.Response(404))
        provider = make_provider(handler)

        with pytest.raises(RatesNotFoundError) as exc_info:
            provider.fetch_rates(date(2030, 1, 1), "usd")

        assert exc_info.value.rate_date == date(2030, 1, 1)
        assert len(handler.urls) == 1

    def test_other_client_error_is_invalid_response(self):
        provider = make_provider(RecordingHandler(httpx.Response(403)))

        with pytest.raises(InvalidResponseError, match="HTTP 403"):
            provider.fetch_rates(date(2024, 1, 1), "usd")

    def test_non_json_body(self):
        provider = make_provider(RecordingHandler(httpx.Response(200, text="<html>")))

        with pytest.raises(InvalidResponseError):
            provider.fetch_rates(date(2024, 1, 1), "usd")

    def test_non_object_body(self):
        provider = make_provider(RecordingHandler(ok([1, 2, 3])))

        with pytest.raises(InvalidResponseError, match="not a JSON object"):
            provider.fetch_rates(date(2024, 1, 1), "usd")

    def test_missing_base_key(self):
        provider = make_provider(RecordingHandler(ok({"date": "2024-01-01", "eur": {"usd": 1.1}})))

        with pytest.raises(InvalidResponseError):
            provider.fetch_rates(date(2024, 1, 1), "usd")

    def test_errors_share_base_class(self):
        provider = make_provider(RecordingHandler(httpx.Response(404)))

        with pytest.raises(ExchangeRateError):
            provider.fetch_rates(None, "usd")


# =============================================================================
# RETRY TESTS
# =============================================================================

class TestRetry:

    def test_server_error_retried_until_success(self):
        handler = RecordingHandler(
            httpx.Response(503),
            httpx.Response(502),
            ok({"date": "2024-01-01", "usd": {"eur": 0.9}}),
        )
        provider = make_provider(handler)

        assert provider.fetch_rates(date(2024, 1, 1), "usd") == {"eur": Decimal("0.9")}
        assert len(handler.urls) == 3

    def test_connection_error_exhausts_retries(self):
        request = httpx.Request("GET", "https://rates.test")
        handler = RecordingHandler(httpx.ConnectError("refused", request=request))
        provider = make_provider(handler)

        with pytest.raises(NetworkUnavailableError):
            provider.fetch_rates(date(2024, 1, 1), "usd")

        assert len(handler.urls) == provider.MAX_RETRY_ATTEMPTS

    def test_timeout_is_network_unavailable(self):
        request = httpx.Request("GET", "https://rates.test")
        provider = make_provider(RecordingHandler(httpx.ReadTimeout("slow", request=request)))
        provider.MAX_RETRY_ATTEMPTS = 1

        with pytest.raises(NetworkUnavailableError, match="timeout"):
            provider.fetch_rates(date(2024, 1, 1), "usd")

    def test_invalid_response_not_retried(self):
        handler = RecordingHandler(ok([]))
        provider = make_provider(handler)

        with pytest.raises(InvalidResponseError):
            provider.fetch_rates(date(2024, 1, 1), "usd")

        assert len(handler.urls) == 1
