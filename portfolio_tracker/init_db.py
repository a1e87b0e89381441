# portfolio_tracker/init_db.py
"""
Database initialization script.

Creates every table for the configured database:
    python -m portfolio_tracker.init_db
    PORTFOLIO_DATABASE_URL=sqlite:///other.db python -m portfolio_tracker.init_db
"""
import logging

from sqlalchemy.engine import Engine

from portfolio_tracker.database import create_db_engine
from portfolio_tracker.models import Base
from portfolio_tracker.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def init_db(engine: Engine | None = None) -> Engine:
    """Create all database tables defined in models."""
    engine = engine or create_db_engine()
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info(f"Tables created: {', '.join(sorted(Base.metadata.tables))}")
    return engine


if __name__ == "__main__":
    setup_logging()
    init_db()
