"""Database infrastructure setup for the on-device local store."""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.infrastructure.config.settings import settings

# Engine creation is deferred until needed to avoid errors when using in-memory mode
_engine = None
_SessionLocal = None
_database_url: Optional[str] = None
_echo: Optional[bool] = None


def configure_database(database_url: str, echo: bool = False) -> None:
    """
    Point the local store at a database, dropping any engine already built.

    Args:
        database_url: SQLAlchemy URL (e.g., sqlite:///local_store.db)
        echo: Log SQL statements
    """
    global _engine, _SessionLocal, _database_url, _echo
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
    _database_url = database_url
    _echo = echo


def _get_engine():
    """Get or create the database engine."""
    global _engine
    if _engine is None:
        database_url = _database_url or settings.database_url
        if not database_url:
            raise ValueError("DATABASE_URL is required for database operations")
        _engine = create_engine(
            database_url,
            pool_pre_ping=True,
            echo=settings.debug_mode if _echo is None else _echo,
        )
    return _engine


def get_db_session():
    """
    Get a database session.

    Returns:
        SQLAlchemy session instance
    """
    global _SessionLocal
    if _SessionLocal is None:
        engine = _get_engine()
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return _SessionLocal()


def create_schema() -> None:
    """Create local store tables when they do not exist yet."""
    from app.adapters.outbound.local_store.models import Base

    Base.metadata.create_all(_get_engine())
