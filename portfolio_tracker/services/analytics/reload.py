# portfolio_tracker/services/analytics/reload.py
"""
Coalesced recomputation of cached analytics.

Portfolio edits arrive as a stream of change notifications (see
database.watch_session). Rebuilding on every notification is wasteful: a
single edit can flush several rows. The coordinator keeps a dirty flag
instead and rebuilds at most once, on the next read.

Rules:
    - mark_dirty() only sets a flag; any number of calls coalesce
    - current() rebuilds when dirty, then swaps the new result in
    - readers never see a half-built result
    - a change during a rebuild leaves the coordinator dirty
    - a failed rebuild keeps the previous result and stays dirty

Each rebuild runs under its own correlation ID, so its log lines can be
grouped.
"""

import logging
import threading
from collections.abc import Callable
from typing import Generic, TypeVar

from portfolio_tracker.utils.context import correlation_scope

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ReloadCoordinator(Generic[T]):
    """
    Thread-safe dirty-flag cache around a builder function.

    Usage:
        coordinator = ReloadCoordinator(dashboard_service.load)
        watch_session(db, coordinator)

        data = coordinator.current()    # builds
        data = coordinator.current()    # cached
        db.add(snapshot); db.flush()    # marks dirty
        data = coordinator.current()    # rebuilds once
    """

    def __init__(self, builder: Callable[[], T]) -> None:
        self._builder = builder
        self._result: T | None = None
        self._has_result = False
        # Bumped by every mark_dirty; a build is current if nothing bumped it meanwhile
        self._generation = 1
        self._built_generation = 0
        self._reload_count = 0
        self._state_lock = threading.Lock()
        self._build_lock = threading.Lock()

    @property
    def is_dirty(self) -> bool:
        with self._state_lock:
            return self._built_generation != self._generation

    @property
    def reload_count(self) -> int:
        """Number of successful rebuilds so far."""
        return self._reload_count

    def mark_dirty(self, reason: str = "") -> None:
        with self._state_lock:
            self._generation += 1
        logger.debug(f"Analytics marked dirty{': ' + reason if reason else ''}")

    def set_builder(self, builder: Callable[[], T]) -> None:
        """Swap the builder (e.g. after a display currency change) and mark dirty."""
        with self._state_lock:
            self._builder = builder
        self.mark_dirty("builder replaced")

    def current(self) -> T:
        """
        Return the cached result, rebuilding first if dirty.

        Concurrent callers wait for one rebuild instead of starting their own.

        Raises:
            Whatever the builder raises when there is no previous result
        """
        if not self.is_dirty:
            return self._result  # type: ignore[return-value]

        with self._build_lock:
            with self._state_lock:
                target_generation = self._generation
                builder = self._builder
                if self._built_generation == target_generation:
                    return self._result  # type: ignore[return-value]

            with correlation_scope("reload"):
                logger.info("Rebuilding analytics caches")
                try:
                    result = builder()
                except Exception:
                    logger.exception("Analytics rebuild failed")
                    if not self._has_result:
                        raise
                    return self._result  # type: ignore[return-value]

            with self._state_lock:
                self._result = result
                self._has_result = True
                self._built_generation = target_generation
                self._reload_count += 1
            return result
