"""Structured logging for readiness services.

Every service event is a snake_case structlog event. The student being
changed and the acting user (PoC, manager or the student themself) travel as
contextvars, so repository and resolver logs emitted during a mutation carry
them too.
"""

from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING

import structlog
from structlog.contextvars import (
    bind_contextvars,
    bound_contextvars,
    clear_contextvars,
    merge_contextvars,
)
from structlog.types import Processor

if TYPE_CHECKING:
    from job_readiness_core.config.settings import Settings

# SQL echo and driver chatter stay out of application logs
QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite", "asyncpg")


def _shared_processors() -> list[Processor]:
    return [
        merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _render_processors(log_format: str) -> list[Processor]:
    """Final processors: JSON lines with flattened tracebacks, or console output."""
    if log_format == "json":
        return [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
        structlog.dev.ConsoleRenderer(),
    ]


def configure_logging(settings: Settings) -> None:
    """Route structlog and stdlib logging through one handler on the root logger.

    Replaces any existing root handlers, so calling it again reconfigures
    instead of duplicating output.
    """
    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=_render_processors(settings.log_format),
            foreign_pre_chain=shared,
        )
    )

    level = _resolve_level(settings.log_level)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def student_log_context(
    student_id: str, actor_id: str | None = None
) -> AbstractContextManager[None]:
    """Bind student and actor for the duration of a block, restoring prior context after."""
    if actor_id is None:
        return bound_contextvars(student_id=student_id)
    return bound_contextvars(student_id=student_id, actor_id=actor_id)


def bind_student_context(student_id: str, actor_id: str | None = None) -> None:
    """Bind student (and acting user) for the rest of the process, e.g. one CLI run."""
    bind_contextvars(student_id=student_id)
    if actor_id is not None:
        bind_contextvars(actor_id=actor_id)


def clear_student_context() -> None:
    """Clear all bound context variables."""
    clear_contextvars()


def _resolve_level(level_name: str) -> int:
    """Convert a level name to its logging constant, defaulting to INFO."""
    return logging.getLevelNamesMapping().get(level_name.upper(), logging.INFO)
