"""Pytest configuration.

Each test gets:
1. A fresh in-memory SQLite database (StaticPool keeps one connection alive)
2. An AsyncSession shared by the test body and the app under test
3. An httpx client talking to the app in-process, with get_db and
   get_current_user overridden
"""

import pytest
import pytest_asyncio
from fastapi import HTTPException, status
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database.base import Base
from app.core.database.engine import get_db, import_models
from app.features.private import service as private_service
from app.features.users.dependencies import get_current_user
from app.main import app


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    import_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def private_provider():
    """Make sure the private realms are registered with node access."""
    private_service.register()
    yield


class AuthState:
    """Who the overridden get_current_user returns; None means 401."""

    def __init__(self):
        self.user = None


@pytest.fixture
def auth():
    return AuthState()


@pytest_asyncio.fixture
async def client(db, auth):
    async def override_get_db():
        yield db

    async def override_get_current_user():
        if auth.user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
        return auth.user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
