"""Observability: structured logging."""

from job_readiness_services.observability.logging import (
    bind_student_context,
    clear_student_context,
    configure_logging,
    student_log_context,
)

__all__ = [
    "bind_student_context",
    "clear_student_context",
    "configure_logging",
    "student_log_context",
]
