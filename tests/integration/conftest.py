"""Integration test fixtures: file-backed SQLite, or PostgreSQL when reachable."""

from __future__ import annotations

import functools
import socket
import time
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from _pytest.fixtures import FixtureRequest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from job_readiness_core.config.settings import Settings
from job_readiness_infra.db.engine import create_engine
from job_readiness_infra.db.session import create_session_factory, drop_db, init_db
from tests.mocks.mock_settings import make_settings


def _tcp_reachable(
    host: str,
    port: int,
    timeout: float = 1.0,
    retries: int = 3,
    delay: float = 1.0,
) -> bool:
    """Check if a TCP service is reachable, retrying on failure."""
    for attempt in range(retries):
        try:
            with socket.create_connection((host, port), timeout=timeout):
                return True
        except OSError:
            if attempt < retries - 1:
                time.sleep(delay)
    return False


@functools.cache
def _is_postgres_up() -> bool:
    """Check PostgreSQL availability lazily (cached after first call)."""
    return _tcp_reachable("localhost", 5432)


@pytest.fixture(params=["sqlite", "postgres"])
def integration_settings(request: FixtureRequest, tmp_path: Path) -> Settings:
    """Settings for each backend; postgres is skipped when not running."""
    if request.param == "postgres":
        if not _is_postgres_up():
            pytest.skip("PostgreSQL not reachable on localhost:5432")
        return make_settings(db_backend="postgres")
    return make_settings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'readiness.db'}")


@pytest_asyncio.fixture
async def session_factory(
    integration_settings: Settings,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create the schema, yield a session factory, then drop everything."""
    engine = create_engine(integration_settings)
    await init_db(engine)
    yield create_session_factory(engine)
    await drop_db(engine)
    await engine.dispose()
