"""pytest fixtures for indexer tests.

Provides:
- postgres_container: Session-scoped testcontainer PostgreSQL instance with migrations applied
- session: Function-scoped database session with table cleanup
- uow_factory: Function-scoped UnitOfWork factory backed by PostgreSQL
- store: In-memory store for pipeline tests that do not need a database
"""

import os
import subprocess
import sys
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fakes import FakeStore
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ark_indexer.core.database import setup_db_session
from ark_indexer.uow import create_uow_factory

ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture(scope="session")
def postgres_container():
    """Provide session-scoped PostgreSQL container with migrations applied.

    Tests that need it are skipped when no Docker daemon is reachable.
    Migrations run in a subprocess to avoid asyncio event loop conflicts.
    """
    from testcontainers.postgres import PostgresContainer

    container = PostgresContainer(
        image="postgres:17",
        username="test",
        password="test",
        dbname="test_ark",
    )
    try:
        container.start()
    except Exception as e:
        pytest.skip(f"Docker unavailable for PostgreSQL tests: {e}")

    try:
        db_url = container.get_connection_url(driver="psycopg")

        env = os.environ.copy()
        env["DATABASE_URL"] = db_url

        subprocess.run(
            [sys.executable, "-m", "alembic", "upgrade", "head"],
            check=True,
            capture_output=True,
            text=True,
            env=env,
            cwd=ROOT,
        )

        yield container
    finally:
        container.stop()


@pytest.fixture(scope="session", autouse=True)
def test_environment():
    """Run every test with APP_ENV=test so Settings skips required-variable checks."""
    os.environ.setdefault("APP_ENV", "test")
    os.environ["TZ"] = "UTC"
    yield


@pytest_asyncio.fixture(scope="function")
async def session(postgres_container) -> AsyncGenerator[AsyncSession, None]:
    """Provide function-scoped database session with empty tables."""
    db_url = postgres_container.get_connection_url(driver="psycopg")
    session_factory = setup_db_session(db_url, pool_size=5)

    async with session_factory() as session:
        yield session

        await session.rollback()

        await session.execute(text("DELETE FROM collection_activities"))
        await session.execute(text("DELETE FROM token_transfers"))
        await session.execute(text("DELETE FROM tokens"))
        await session.execute(text("DELETE FROM collections"))
        await session.commit()


@pytest_asyncio.fixture(scope="function")
async def uow_factory(session: AsyncSession):
    """Provide function-scoped UnitOfWork factory bound to the test database."""
    session_factory = async_sessionmaker(bind=session.bind, expire_on_commit=False)
    return create_uow_factory(session_factory)


@pytest.fixture
def store() -> FakeStore:
    """In-memory store; pass ``store.uow_factory`` where a UnitOfWorkFactory is expected."""
    return FakeStore()
