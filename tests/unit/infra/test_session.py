"""Tests for engine options and the unit-of-work session scope."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from job_readiness_infra.db.engine import engine_options
from job_readiness_infra.db.repositories.config_repo import ConfigRepository
from job_readiness_infra.db.session import session_scope
from tests.mocks.mock_factories import PROGRAMMING, make_config
from tests.mocks.mock_settings import make_settings


@pytest.mark.unit
class TestEngineOptions:
    """Tests for engine_options."""

    def test_memory_sqlite_shares_one_connection(self) -> None:
        """In-memory SQLite uses a static pool so every session sees the schema."""
        options = engine_options(make_settings(database_url="sqlite+aiosqlite://"))
        assert options["poolclass"] is StaticPool

    def test_file_sqlite_waits_on_locks(self) -> None:
        """File SQLite keeps the default pool and applies the busy timeout."""
        options = engine_options(
            make_settings(
                database_url="sqlite+aiosqlite:///./readiness.db",
                sqlite_busy_timeout_seconds=5.0,
            )
        )
        assert "poolclass" not in options
        assert options["connect_args"]["timeout"] == 5.0

    def test_postgres_pool_from_settings(self) -> None:
        """PostgreSQL pool sizing comes from settings."""
        options = engine_options(
            make_settings(db_backend="postgres", db_pool_size=8, db_max_overflow=2)
        )
        assert options == {"pool_size": 8, "max_overflow": 2, "pool_pre_ping": True}


@pytest.mark.unit
class TestSessionScope:
    """Tests for session_scope."""

    async def test_commits_on_success(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Writes inside a clean block are visible to later sessions."""
        config = make_config(PROGRAMMING)
        async with session_scope(session_factory) as session:
            await ConfigRepository(session).create(config)

        async with session_factory() as session:
            assert await ConfigRepository(session).get_by_id(config.id) is not None

    async def test_rolls_back_on_error(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """A failing block leaves nothing behind and re-raises."""
        config = make_config(PROGRAMMING)
        with pytest.raises(RuntimeError, match="boom"):
            async with session_scope(session_factory) as session:
                await ConfigRepository(session).create(config)
                raise RuntimeError("boom")

        async with session_factory() as session:
            assert await ConfigRepository(session).get_by_id(config.id) is None
