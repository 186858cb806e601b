"""Database engine management."""

from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from profile_rag.config import Settings, get_settings
from profile_rag.database.models import Base
from profile_rag.utils.logging import get_logger

logger = get_logger("database")

# Global engine instance
_engine: Optional[AsyncEngine] = None


def get_database_url(settings: Optional[Settings] = None) -> str:
    """Get the database URL, converting to an async driver if needed."""
    settings = settings or get_settings()
    db_url = settings.database.url

    if db_url.startswith("postgresql://"):
        db_url = db_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif db_url.startswith("postgresql+psycopg2://"):
        db_url = db_url.replace("postgresql+psycopg2://", "postgresql+asyncpg://", 1)
    elif db_url.startswith("sqlite://"):
        db_url = db_url.replace("sqlite://", "sqlite+aiosqlite://", 1)

    return db_url


def create_engine(settings: Optional[Settings] = None) -> AsyncEngine:
    """Create the SQLAlchemy async engine."""
    settings = settings or get_settings()
    db_url = get_database_url(settings)

    engine_kwargs = {"echo": settings.database.database_echo}
    if not db_url.startswith("sqlite"):
        engine_kwargs["pool_pre_ping"] = True

    engine = create_async_engine(db_url, **engine_kwargs)
    logger.info(f"Database engine created: driver={engine.url.drivername}")
    return engine


def get_engine() -> AsyncEngine:
    """Get or create the global database engine."""
    global _engine
    if _engine is None:
        _engine = create_engine()
    return _engine


async def close_engine() -> None:
    """Dispose of the global engine."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        logger.info("Database engine closed")


async def create_tables(engine: Optional[AsyncEngine] = None) -> None:
    """Create all tables that do not exist yet."""
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")


async def check_connection(engine: Optional[AsyncEngine] = None) -> bool:
    """Check if the database answers a trivial query."""
    try:
        engine = engine or get_engine()
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            row = result.fetchone()
            return row is not None and row[0] == 1
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
