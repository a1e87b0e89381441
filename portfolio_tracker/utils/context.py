# portfolio_tracker/utils/context.py
"""
Execution context for the portfolio tracker.

Holds the correlation ID that groups log lines belonging to a single unit
of work, such as one dashboard rebuild or one exchange-rate attachment.

Uses Python's contextvars so the value follows the current thread and any
async tasks spawned from it.

Usage:
    from portfolio_tracker.utils.context import correlation_scope, get_correlation_id

    with correlation_scope("reload"):
        logger.info("Rebuilding dashboard")  # tagged with reload-<hex>
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

# =============================================================================
# CONTEXT VARIABLES
# =============================================================================

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


# =============================================================================
# CORRELATION ID
# =============================================================================

def get_correlation_id() -> str | None:
    """
    Get the current correlation ID.

    Returns:
        The correlation ID for the current unit of work, or None if not set.
    """
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID for the current unit of work.

    Args:
        correlation_id: Unique identifier for this unit of work
    """
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    """Clear the correlation ID."""
    _correlation_id_var.set(None)


def new_correlation_id(prefix: str) -> str:
    """Build a short correlation ID such as ``reload-1a2b3c4d``."""
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@contextmanager
def correlation_scope(prefix: str) -> Iterator[str]:
    """
    Run a block under a fresh correlation ID.

    The previous ID (if any) is restored on exit, so nested scopes
    behave as expected.

    Args:
        prefix: Label for the kind of work, e.g. "reload" or "rates"

    Yields:
        The correlation ID that is active inside the block
    """
    correlation_id = new_correlation_id(prefix)
    token = _correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id_var.reset(token)
