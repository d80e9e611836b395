"""Abstract store interfaces for configs and student progress."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from job_readiness_core.models.config import JobReadinessConfig
from job_readiness_core.models.progress import StudentJobReadiness


@runtime_checkable
class ConfigStore(Protocol):
    """Persistence for configuration documents, keyed by (school, campus)."""

    async def get_by_id(self, config_id: str) -> JobReadinessConfig | None:
        """Retrieve a config by its ID."""
        ...

    async def get_by_scope(
        self, school: str, campus_id: str | None
    ) -> JobReadinessConfig | None:
        """Retrieve the config for an exact (school, campus) pair."""
        ...

    async def create(self, config: JobReadinessConfig) -> JobReadinessConfig:
        """Create a config; raises DuplicateConfigError if the pair is taken."""
        ...

    async def update(self, config: JobReadinessConfig) -> JobReadinessConfig:
        """Persist changes to an existing config."""
        ...

    async def delete(self, config_id: str) -> bool:
        """Delete a config. Returns False if it did not exist."""
        ...

    async def list_applicable(
        self, schools: list[str], campus_id: str | None
    ) -> list[JobReadinessConfig]:
        """Active configs for any of the schools, global or matching the campus."""
        ...

    async def list_all(self, school: str | None = None) -> list[JobReadinessConfig]:
        """List configs, optionally for one school."""
        ...


@runtime_checkable
class ProgressStore(Protocol):
    """Persistence for one progress document per student."""

    async def get_by_student(self, student_id: str) -> StudentJobReadiness | None:
        """Retrieve a student's progress document."""
        ...

    async def create(self, progress: StudentJobReadiness) -> StudentJobReadiness:
        """Create a progress document."""
        ...

    async def save(self, progress: StudentJobReadiness) -> StudentJobReadiness:
        """Persist a progress document if its version is still current."""
        ...

    async def list_by_school(self, school: str) -> list[StudentJobReadiness]:
        """List progress documents for a school."""
        ...
