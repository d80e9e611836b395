"""Config repository: persists JobReadinessConfig documents."""

from __future__ import annotations

from datetime import UTC, datetime

import structlog
from pydantic import ValidationError
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from job_readiness_core.constants import ALL_CAMPUSES
from job_readiness_core.exceptions import ConfigNotFoundError, DuplicateConfigError
from job_readiness_core.models.config import JobReadinessConfig
from job_readiness_infra.db.models import ReadinessConfigModel

logger = structlog.get_logger()


def _scope_key(campus_id: str | None) -> str:
    """Non-null uniqueness key for a campus reference."""
    return campus_id if campus_id is not None else ALL_CAMPUSES


def _as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes returned by SQLite."""
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _to_domain(row: ReadinessConfigModel) -> JobReadinessConfig:
    """Convert an ORM row into a validated config document."""
    return JobReadinessConfig.model_validate(
        {
            "id": row.id,
            "school": row.school,
            "campus_id": row.campus_id,
            "criteria": row.criteria_json,
            "is_active": row.is_active,
            "created_by": row.created_by,
            "updated_by": row.updated_by,
            "created_at": _as_utc(row.created_at),
            "updated_at": _as_utc(row.updated_at),
        }
    )


def _criteria_json(config: JobReadinessConfig) -> list[dict[str, object]]:
    """Serialize criteria for the JSON column."""
    return [c.model_dump(mode="json") for c in config.criteria]


class ConfigRepository:
    """CRUD operations for readiness configs. Enforces one config per (school, campus)."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize with an async session."""
        self._session = session

    async def _get_row(self, config_id: str) -> ReadinessConfigModel | None:
        return await self._session.get(ReadinessConfigModel, config_id)

    async def get_by_id(self, config_id: str) -> JobReadinessConfig | None:
        """Retrieve a config by ID."""
        row = await self._get_row(config_id)
        return _to_domain(row) if row else None

    async def get_by_scope(
        self, school: str, campus_id: str | None
    ) -> JobReadinessConfig | None:
        """Retrieve the config for an exact (school, campus) pair."""
        stmt = select(ReadinessConfigModel).where(
            ReadinessConfigModel.school == school,
            ReadinessConfigModel.scope_key == _scope_key(campus_id),
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        return _to_domain(row) if row else None

    async def create(self, config: JobReadinessConfig) -> JobReadinessConfig:
        """Create a new config.

        The keyed lookup rejects duplicates up front; the unique constraint
        catches a concurrent insert, in which case the session is rolled back.
        """
        if await self.get_by_scope(config.school, config.campus_id) is not None:
            raise DuplicateConfigError(
                f"config already exists for school={config.school!r} campus={config.campus_id!r}"
            )
        row = ReadinessConfigModel(
            id=config.id,
            school=config.school,
            campus_id=config.campus_id,
            scope_key=_scope_key(config.campus_id),
            criteria_json=_criteria_json(config),
            is_active=config.is_active,
            created_by=config.created_by,
            updated_by=config.updated_by,
            created_at=config.created_at,
            updated_at=config.updated_at,
        )
        self._session.add(row)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            await self._session.rollback()
            raise DuplicateConfigError(
                f"config already exists for school={config.school!r} campus={config.campus_id!r}"
            ) from exc
        return _to_domain(row)

    async def update(self, config: JobReadinessConfig) -> JobReadinessConfig:
        """Persist criteria, activity and editor of an existing config.

        School and campus are immutable; create a new config to change scope.
        """
        row = await self._get_row(config.id)
        if row is None:
            raise ConfigNotFoundError(f"config {config.id} not found")
        row.criteria_json = _criteria_json(config)
        row.is_active = config.is_active
        row.updated_by = config.updated_by
        row.updated_at = datetime.now(UTC)
        await self._session.flush()
        return _to_domain(row)

    async def delete(self, config_id: str) -> bool:
        """Delete a config. Returns False if it did not exist."""
        row = await self._get_row(config_id)
        if row is None:
            return False
        await self._session.delete(row)
        await self._session.flush()
        return True

    async def list_applicable(
        self, schools: list[str], campus_id: str | None
    ) -> list[JobReadinessConfig]:
        """Active configs for the given schools that are global or match the campus.

        A row that fails validation is logged and skipped so one malformed
        config cannot break resolution.
        """
        campus_filter = [ReadinessConfigModel.campus_id.is_(None)]
        if campus_id is not None:
            campus_filter.append(ReadinessConfigModel.campus_id == campus_id)
        stmt = select(ReadinessConfigModel).where(
            ReadinessConfigModel.is_active.is_(True),
            ReadinessConfigModel.school.in_(schools),
            or_(*campus_filter),
        )
        result = await self._session.execute(stmt)
        configs: list[JobReadinessConfig] = []
        for row in result.scalars().all():
            try:
                configs.append(_to_domain(row))
            except ValidationError as exc:
                logger.error(
                    "config_malformed",
                    config_id=row.id,
                    school=row.school,
                    campus_id=row.campus_id,
                    errors=exc.error_count(),
                )
        return configs

    async def list_all(self, school: str | None = None) -> list[JobReadinessConfig]:
        """List configs ordered by school and scope."""
        stmt = select(ReadinessConfigModel).order_by(
            ReadinessConfigModel.school, ReadinessConfigModel.scope_key
        )
        if school is not None:
            stmt = stmt.where(ReadinessConfigModel.school == school)
        result = await self._session.execute(stmt)
        return [_to_domain(row) for row in result.scalars().all()]
