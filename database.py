import logging
from typing import Optional

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from config.settings import settings, IS_PRODUCTION

logger = logging.getLogger(__name__)

# Validate production database configuration
if IS_PRODUCTION and settings.database_url and "sqlite" in settings.database_url.lower():
    raise RuntimeError("SQLite is forbidden in production. Use a PostgreSQL DATABASE_URL.")

# Create declarative base for models
Base = declarative_base()


def async_database_url(url: str) -> str:
    """Point plain PostgreSQL URLs (as hosted providers hand them out) at the asyncpg driver."""
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


def create_engine_for(url: str) -> AsyncEngine:
    return create_async_engine(
        async_database_url(url),
        echo=False,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# No DATABASE_URL means the remote project table is not configured
DATABASE_URL = settings.database_url

engine: Optional[AsyncEngine] = create_engine_for(DATABASE_URL) if DATABASE_URL else None

AsyncSessionLocal: Optional[async_sessionmaker] = create_session_factory(engine) if engine else None


async def init_db(db_engine: Optional[AsyncEngine] = None) -> bool:
    """
    Create the remote tables if they are missing.
    This should be called on application startup.

    Returns:
        False when no database is configured, True otherwise
    """
    db_engine = db_engine or engine
    if db_engine is None:
        logger.info("DATABASE_URL not set. Remote project store disabled, using local storage only.")
        return False

    async with db_engine.begin() as conn:
        # Import models here to ensure they're registered with Base
        from database_models import ProjectRow  # noqa: F401
        # Create all tables
        await conn.run_sync(Base.metadata.create_all)
    return True
