"""Shared fixtures: in-memory SQLite database, sessions, HTTP client, settings overrides.

Tests run against SQLite through aiosqlite so no PostgreSQL server is needed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.config as app_config
from app.db import get_session
from app.main import app
from app.models import SQLModel

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from sqlalchemy.ext.asyncio import AsyncEngine

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """A fresh in-memory database per test with every table created."""
    _engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Yield a database session; services commit through it as they do in production."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def override_settings(monkeypatch: pytest.MonkeyPatch) -> Callable[..., app_config.Settings]:
    """Swap the cached settings for one test, e.g. ``override_settings(over_allocation_policy="reject")``."""

    def _apply(**overrides: object) -> app_config.Settings:
        settings = app_config.Settings(**overrides)  # type: ignore[arg-type]
        monkeypatch.setattr(app_config, "_settings", settings)
        return settings

    return _apply
