"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from job_readiness_core.config.settings import Settings
from job_readiness_core.models.criteria import CriterionDefinition
from job_readiness_infra.db.engine import create_engine
from job_readiness_infra.db.session import create_session_factory, init_db
from tests.mocks.mock_factories import make_criterion
from tests.mocks.mock_settings import make_settings


@pytest.fixture
def settings() -> Settings:
    """Return test Settings with no retry backoff."""
    return make_settings()


@pytest.fixture
def sample_criteria() -> list[CriterionDefinition]:
    """Return three mandatory weight-1 criteria."""
    return [
        make_criterion("profile_complete"),
        make_criterion("resume_uploaded"),
        make_criterion("mock_interview"),
    ]


@pytest.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Create an in-memory SQLite database and return a session factory for it."""
    engine = create_engine(make_settings())
    await init_db(engine)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Open one session on the in-memory database."""
    async with session_factory() as sess:
        yield sess
