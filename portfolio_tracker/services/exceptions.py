# portfolio_tracker/services/exceptions.py
"""
Service layer exceptions.

Analytics results that are mathematically undefined are returned as None,
never raised. These exceptions cover storage lookups, input validation and
the exchange-rate fetch boundary.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   └── InvalidTargetAllocationError
    ├── NotFoundError
    │   └── SnapshotNotFoundError
    └── ExchangeRateError
        ├── NetworkUnavailableError
        ├── InvalidResponseError
        └── RatesNotFoundError
"""

from datetime import date
from decimal import Decimal


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when input validation fails.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidTargetAllocationError(ValidationError):
    """Raised when a category target allocation is outside 0-100."""

    def __init__(self, value: Decimal) -> None:
        self.value = value
        super().__init__(
            f"Target allocation must be between 0 and 100, got {value}",
            field="target_allocation_percentage",
        )


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Snapshot", "Category")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class SnapshotNotFoundError(NotFoundError):
    """Raised when no snapshot exists for a given date."""

    def __init__(self, snapshot_date: date) -> None:
        self.snapshot_date = snapshot_date
        super().__init__(
            f"No snapshot on {snapshot_date.isoformat()}",
            resource_type="Snapshot",
            resource_id=snapshot_date.isoformat(),
        )


# =============================================================================
# EXCHANGE RATE ERRORS
# =============================================================================


class ExchangeRateError(ServiceError):
    """
    Base exception for exchange-rate fetch failures.

    Attributes:
        base_currency: Base currency that was requested
        rate_date: Date that was requested (None for "latest")
    """

    def __init__(
            self,
            message: str,
            base_currency: str | None = None,
            rate_date: date | None = None,
    ) -> None:
        self.base_currency = base_currency
        self.rate_date = rate_date
        super().__init__(message)


class NetworkUnavailableError(ExchangeRateError):
    """
    Raised when the rates service cannot be reached.

    Transient: connection errors, timeouts, 5xx responses. Retried.
    """

    def __init__(
            self,
            reason: str,
            base_currency: str | None = None,
            rate_date: date | None = None,
    ) -> None:
        self.reason = reason
        super().__init__(
            f"Exchange rate service unavailable: {reason}",
            base_currency=base_currency,
            rate_date=rate_date,
        )


class InvalidResponseError(ExchangeRateError):
    """Raised when the rates service returns a payload we cannot parse."""

    def __init__(
            self,
            reason: str,
            base_currency: str | None = None,
            rate_date: date | None = None,
    ) -> None:
        self.reason = reason
        super().__init__(
            f"Invalid exchange rate response: {reason}",
            base_currency=base_currency,
            rate_date=rate_date,
        )


class RatesNotFoundError(ExchangeRateError):
    """Raised when no rate table is published for the requested date."""

    def __init__(self, base_currency: str, rate_date: date | None = None) -> None:
        when = rate_date.isoformat() if rate_date else "latest"
        super().__init__(
            f"No {base_currency.upper()} exchange rates for {when}",
            base_currency=base_currency,
            rate_date=rate_date,
        )
