# portfolio_tracker/database.py
"""
Database connection, session management and change tracking.

This module configures SQLAlchemy with:
- SQLite by default (StaticPool for in-memory URLs), any SQLAlchemy URL otherwise
- A session factory for the storage collaborator
- A flush listener that marks dashboard caches dirty when portfolio data changes
"""

import logging
from collections.abc import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .config import get_settings
from .models import (
    Asset,
    CashFlowOperation,
    Category,
    ExchangeRate,
    Snapshot,
    SnapshotAssetValue,
)
from .services.protocols import InvalidationTargetProtocol

logger = logging.getLogger(__name__)

# Entities whose changes invalidate dashboard caches
WATCHED_MODELS = (
    Snapshot,
    Asset,
    SnapshotAssetValue,
    CashFlowOperation,
    ExchangeRate,
    Category,
)


def create_db_engine(database_url: str | None = None, echo: bool | None = None) -> Engine:
    """
    Create SQLAlchemy engine for the given URL (defaults to settings).

    In-memory SQLite uses StaticPool so every session shares one connection.
    """
    settings = get_settings()
    url = database_url or settings.database_url
    echo = settings.debug if echo is None else echo

    if url.lower().startswith("sqlite"):
        logger.info(f"Configuring SQLite database: {url}")
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/").endswith("sqlite:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)

    logger.info("Configuring database engine")
    return create_engine(url, echo=echo, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """
    Provide a session that is closed after use.

    Usage:
        for db in get_db(SessionLocal):
            repository = SnapshotRepository(db)
    """
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


def check_database_health(engine: Engine) -> dict:
    """
    Check database connectivity.

    Returns:
        dict: {"status": "healthy"} or {"status": "unhealthy", "error": ...}
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "healthy", "database": engine.dialect.name}
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "error": str(e),
        }


# =============================================================================
# CHANGE TRACKING
# =============================================================================

def _changed_models(session: Session) -> set[str]:
    changed = set()
    for obj in (*session.new, *session.dirty, *session.deleted):
        if isinstance(obj, WATCHED_MODELS):
            changed.add(type(obj).__name__)
    return changed


def watch_session(session: Session, target: InvalidationTargetProtocol) -> None:
    """
    Mark ``target`` dirty whenever a flush touches portfolio data.

    Several flushes before the next read coalesce into a single rebuild
    because the target only keeps a flag.

    Args:
        session: Session to observe
        target: Anything with ``mark_dirty(reason)``, normally a ReloadCoordinator
    """

    @event.listens_for(session, "after_flush")
    def _after_flush(flush_session: Session, flush_context) -> None:
        changed = _changed_models(flush_session)
        if changed:
            target.mark_dirty(f"flush: {', '.join(sorted(changed))}")

    logger.debug(f"Watching session {id(session)} for portfolio changes")
