"""
Shared fixtures: in-memory SQLite database, storage gateway, service and client.
"""

from __future__ import annotations

import pytest
import structlog
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from subscription_service.core.database import get_session_factory, init_db
from subscription_service.main import app
from subscription_service.repositories.subscriptions import SubscriptionRepository
from subscription_service.services.subscriptions import SubscriptionService


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def repository(session_factory):
    return SubscriptionRepository(session_factory, structlog.get_logger())


@pytest.fixture
def service(repository):
    return SubscriptionService(repository, structlog.get_logger())


@pytest.fixture
async def client(session_factory):
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
