"""Tests for observability/logging.py."""

from __future__ import annotations

import logging

import pytest
import structlog

from job_readiness_services.observability.logging import (
    _resolve_level,
    bind_student_context,
    clear_student_context,
    configure_logging,
    student_log_context,
)
from tests.mocks.mock_settings import make_settings


@pytest.mark.unit
class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_configure_logging_console_mode(self) -> None:
        """Console mode configures without error."""
        configure_logging(make_settings(log_format="console", log_level="INFO"))
        log = structlog.get_logger()
        assert log is not None

    def test_configure_logging_json_mode(self) -> None:
        """JSON mode installs a single structlog formatter on the root logger."""
        configure_logging(make_settings(log_format="json", log_level="INFO"))
        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_configure_logging_sets_level(self) -> None:
        """Log level is applied to root logger."""
        configure_logging(make_settings(log_level="WARNING"))
        assert logging.getLogger().level == logging.WARNING

    def test_database_loggers_quieted(self) -> None:
        """SQL and driver loggers stay at WARNING even in debug mode."""
        configure_logging(make_settings(log_level="DEBUG"))
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("aiosqlite").level == logging.WARNING
        assert logging.getLogger("sqlalchemy.pool").level == logging.WARNING


@pytest.mark.unit
class TestStudentContext:
    """Tests for bind/clear student context."""

    def test_bind_student_and_actor(self) -> None:
        """Student and actor ids are bound to the context."""
        bind_student_context("student-1", actor_id="poc-1")
        context = structlog.contextvars.get_contextvars()
        assert context["student_id"] == "student-1"
        assert context["actor_id"] == "poc-1"
        clear_student_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_bind_without_actor(self) -> None:
        """The actor id is optional."""
        clear_student_context()
        bind_student_context("student-2")
        assert "actor_id" not in structlog.contextvars.get_contextvars()
        clear_student_context()

    def test_scoped_context_restores_outer_binding(self) -> None:
        """A scoped binding overrides the outer one only inside the block."""
        clear_student_context()
        bind_student_context("student-1")
        with student_log_context("student-2", actor_id="manager-1"):
            context = structlog.contextvars.get_contextvars()
            assert context["student_id"] == "student-2"
            assert context["actor_id"] == "manager-1"
        assert structlog.contextvars.get_contextvars() == {"student_id": "student-1"}
        clear_student_context()

    def test_scoped_context_without_actor(self) -> None:
        """Without an actor only the student is bound, and nothing leaks out."""
        clear_student_context()
        with student_log_context("student-3"):
            assert structlog.contextvars.get_contextvars() == {"student_id": "student-3"}
        assert structlog.contextvars.get_contextvars() == {}


@pytest.mark.unit
class TestResolveLevel:
    """Tests for _resolve_level."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARNING", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("CRITICAL", logging.CRITICAL),
            ("debug", logging.DEBUG),
            ("WARN", logging.WARNING),
            ("notset", logging.NOTSET),
            ("unknown", logging.INFO),
        ],
    )
    def test_resolve_level(self, name: str, expected: int) -> None:
        """Level names resolve to correct logging constants."""
        assert _resolve_level(name) == expected
