"""Pytest configuration and fixtures."""

import os
from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from fedstore.api.app import create_application
from fedstore.config import FederationProviderConfig
from fedstore.db.models import Base, User
from fedstore.db.session import get_db
from fedstore.federation import _factories
from fedstore.federation.locks import KeyedLock
from fedstore.federation.provider import FederationProviderFactory
from tests.fakes import PROVIDER_ID, FakeAuthenticator, FakeDirectory, make_entry


def _database_url(tmp_path: Path) -> str:
    # A file database so concurrent sessions see each other's commits
    return os.environ.get(
        "FEDSTORE_TEST_DATABASE_URL",
        f"sqlite+aiosqlite:///{tmp_path / 'fedstore-test.db'}",
    )


@pytest.fixture
async def async_engine(tmp_path: Path):
    """Create async engine for testing."""
    engine = create_async_engine(_database_url(tmp_path))

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession]:
    """Create database session for testing."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def provider_config() -> FederationProviderConfig:
    return FederationProviderConfig(id=PROVIDER_ID, name="sssd")


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory(
        {
            "alice": make_entry("alice", "a@x.com", "A", "B", ["admins"]),
            "bob": make_entry("bob", "bob@x.com", "Bob", "Builder", ["builders", "admins"]),
        }
    )


@pytest.fixture
def authenticator() -> FakeAuthenticator:
    return FakeAuthenticator({"alice": "s3cret", "bob": "hunter2"})


@pytest.fixture
def factory(provider_config, directory, authenticator) -> FederationProviderFactory:
    return FederationProviderFactory(provider_config, directory, authenticator, locks=KeyedLock())


@pytest.fixture
def count_users(session_factory):
    """Count user rows for a username, in a fresh session."""

    async def _count(username: str | None = None) -> int:
        async with session_factory() as session:
            stmt = select(func.count()).select_from(User)
            if username is not None:
                stmt = stmt.where(User.username == username)
            return (await session.execute(stmt)).scalar_one()

    return _count


@pytest.fixture
def app(session_factory, factory) -> Generator[FastAPI]:
    """Create FastAPI application with the test provider registered."""
    application = create_application()

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db] = override_get_db

    _factories.clear()
    _factories[factory.id] = factory
    yield application
    _factories.clear()


@pytest.fixture
def client() -> TestClient:
    """Create sync test client (no database, no providers)."""
    return TestClient(create_application())


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
