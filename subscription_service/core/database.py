"""
Database engine and session factory.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from subscription_service.core.config import get_settings

settings = get_settings()

engine = create_async_engine(
    settings.sqlalchemy_database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    future=True,
)

async_session_factory = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db(bind: AsyncEngine = engine) -> None:
    """Create the subscriptions table if it does not exist yet."""
    import subscription_service.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def ping_db(bind: AsyncEngine = engine) -> None:
    """Run a trivial query; raises if the database is unreachable."""
    async with bind.connect() as conn:
        await conn.execute(text("SELECT 1"))


def get_session_factory() -> sessionmaker:
    """FastAPI dependency for the session factory used by the storage gateway."""
    return async_session_factory


def get_engine() -> AsyncEngine:
    """FastAPI dependency for the engine (used by readiness checks)."""
    return engine
