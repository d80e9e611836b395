"""Async database engine factory."""

from __future__ import annotations

from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from job_readiness_core.config.settings import Settings


def _is_memory_sqlite(database_url: str) -> bool:
    database = make_url(database_url).database
    return database in (None, "", ":memory:")


def engine_options(settings: Settings) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine`` per backend.

    In-memory SQLite keeps one shared connection so every session sees the
    same schema. File SQLite waits on a competing writer's lock instead of
    failing, which the optimistic version check then resolves. PostgreSQL
    uses a pre-pinged pool sized from settings.
    """
    if settings.db_backend == "sqlite":
        options: dict[str, Any] = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": settings.sqlite_busy_timeout_seconds,
            },
        }
        if _is_memory_sqlite(settings.database_url):
            options["poolclass"] = StaticPool
        return options
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": True,
    }


def create_engine(settings: Settings) -> AsyncEngine:
    """Create an async SQLAlchemy engine based on settings."""
    return create_async_engine(settings.database_url, echo=False, **engine_options(settings))
