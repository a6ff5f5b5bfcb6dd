"""
Database Engine & Session Management
- SQL Server (pyodbc) in production, pooled with QueuePool
- SQLite for development and tests (DB_URL=sqlite://...)
"""
from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session, DeclarativeBase
from sqlalchemy.pool import QueuePool, StaticPool
from typing import Generator
from loguru import logger

from scopegrid.core.config import get_settings

settings = get_settings()


# ============================================================================
# Engine
# ============================================================================
def _build_engine(url: str):
    if url.startswith("sqlite"):
        # In-memory databases live on a single connection shared by all sessions
        return create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=settings.DB_ECHO,
        )
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
        echo=settings.DB_ECHO,
        fast_executemany=True,
    )


engine = _build_engine(settings.DATABASE_URL)


# ============================================================================
# Session Factory
# ============================================================================
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


# ============================================================================
# Declarative Base
# ============================================================================
class Base(DeclarativeBase):
    """Base for all tables (access catalog, views, audit, business data)."""
    pass


# ============================================================================
# Dependency: Get DB Session (for FastAPI)
# ============================================================================
def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding one session per request."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def create_all_tables() -> None:
    """Create every mapped table that does not exist yet."""
    import scopegrid.models  # noqa: F401  registers the mappers
    Base.metadata.create_all(bind=engine)


# ============================================================================
# Health Check
# ============================================================================
def check_db_connection() -> bool:
    """Verify database connectivity."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"DB connection failed: {e}")
        return False


# ============================================================================
# Event Listeners
# ============================================================================
@event.listens_for(engine, "checkout")
def checkout_listener(dbapi_connection, connection_record, connection_proxy):
    """Log when a connection is checked out."""
    logger.debug("DB connection checked out from pool")
