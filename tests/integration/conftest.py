"""Fixtures for SQLite integration tests."""

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

from hsm.config import Config, DatabaseConfig
from hsm.infrastructure.persistence.database import create_db_engine, create_session_factory
from hsm.infrastructure.persistence.tables import metadata


@pytest_asyncio.fixture
async def engine():
    """Per-test in-memory database with all tables created."""
    engine = create_db_engine(
        Config(database=DatabaseConfig(url="sqlite+aiosqlite:///:memory:", auto_migrate=False))
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def file_engine(tmp_path):
    """Database file engine; every session gets its own connection."""
    engine = create_db_engine(
        Config(
            database=DatabaseConfig(
                url=f"sqlite+aiosqlite:///{tmp_path / 'hsm.db'}", auto_migrate=False
            )
        )
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def file_session_factory(file_engine: AsyncEngine):
    return create_session_factory(file_engine)
