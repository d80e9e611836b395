"""Config registry service: authoring and lookup of readiness configs."""

from __future__ import annotations

from collections.abc import Sequence

import structlog
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from job_readiness_core.config.settings import Settings
from job_readiness_core.constants import DEFAULT_CRITERIA
from job_readiness_core.exceptions import ConfigNotFoundError, InvalidConfigError
from job_readiness_core.models.config import JobReadinessConfig
from job_readiness_core.models.criteria import CriterionDefinition
from job_readiness_infra.db.repositories.config_repo import ConfigRepository
from job_readiness_infra.db.session import session_scope

logger = structlog.get_logger()


class ConfigRegistry:
    """Create, edit and look up configs. At most one config per (school, campus)."""

    def __init__(
        self,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Initialize with settings and a session factory."""
        self.settings = settings
        self._session_factory = session_factory

    def _validate_school(self, school: str) -> None:
        if school not in self.settings.known_schools:
            raise InvalidConfigError(
                f"unknown school {school!r}; expected one of {sorted(self.settings.known_schools)}"
            )

    async def create_config(
        self,
        school: str,
        criteria: Sequence[CriterionDefinition],
        created_by: str,
        campus_id: str | None = None,
        is_active: bool = True,
    ) -> JobReadinessConfig:
        """Create a config for a (school, campus) pair.

        Raises InvalidConfigError for unknown schools or repeated criteria ids,
        DuplicateConfigError if the pair already has a config.
        """
        self._validate_school(school)
        try:
            config = JobReadinessConfig(
                school=school,
                campus_id=campus_id,
                criteria=list(criteria),
                is_active=is_active,
                created_by=created_by,
            )
        except ValidationError as exc:
            raise InvalidConfigError(str(exc)) from exc

        async with session_scope(self._session_factory) as session:
            created = await ConfigRepository(session).create(config)

        logger.info(
            "config_created",
            config_id=created.id,
            school=school,
            campus_id=campus_id,
            criteria_count=len(created.criteria),
            created_by=created_by,
        )
        return created

    async def get_config(self, config_id: str) -> JobReadinessConfig:
        """Retrieve a config by id or raise ConfigNotFoundError."""
        async with self._session_factory() as session:
            config = await ConfigRepository(session).get_by_id(config_id)
        if config is None:
            raise ConfigNotFoundError(f"config {config_id} not found")
        return config

    async def find_config(
        self, school: str, campus_id: str | None = None
    ) -> JobReadinessConfig | None:
        """Return the config for an exact (school, campus) pair, if any."""
        async with self._session_factory() as session:
            return await ConfigRepository(session).get_by_scope(school, campus_id)

    async def list_configs(self, school: str | None = None) -> list[JobReadinessConfig]:
        """List configs, optionally for one school."""
        async with self._session_factory() as session:
            return await ConfigRepository(session).list_all(school)

    async def update_criteria(
        self,
        config_id: str,
        criteria: Sequence[CriterionDefinition],
        updated_by: str,
    ) -> JobReadinessConfig:
        """Replace the criteria list of a config."""
        async with session_scope(self._session_factory) as session:
            repo = ConfigRepository(session)
            config = await repo.get_by_id(config_id)
            if config is None:
                raise ConfigNotFoundError(f"config {config_id} not found")
            try:
                edited = JobReadinessConfig.model_validate(
                    {
                        **config.model_dump(exclude={"criteria", "updated_by"}),
                        "criteria": list(criteria),
                        "updated_by": updated_by,
                    }
                )
            except ValidationError as exc:
                raise InvalidConfigError(str(exc)) from exc
            saved = await repo.update(edited)

        logger.info(
            "config_criteria_updated",
            config_id=config_id,
            criteria_count=len(saved.criteria),
            updated_by=updated_by,
        )
        return saved

    async def set_active(
        self, config_id: str, is_active: bool, updated_by: str
    ) -> JobReadinessConfig:
        """Activate or deactivate a config."""
        async with session_scope(self._session_factory) as session:
            repo = ConfigRepository(session)
            config = await repo.get_by_id(config_id)
            if config is None:
                raise ConfigNotFoundError(f"config {config_id} not found")
            saved = await repo.update(
                config.model_copy(update={"is_active": is_active, "updated_by": updated_by})
            )

        logger.info(
            "config_activity_changed",
            config_id=config_id,
            is_active=is_active,
            updated_by=updated_by,
        )
        return saved

    async def delete_config(self, config_id: str) -> None:
        """Delete a config or raise ConfigNotFoundError."""
        async with session_scope(self._session_factory) as session:
            deleted = await ConfigRepository(session).delete(config_id)
        if not deleted:
            raise ConfigNotFoundError(f"config {config_id} not found")
        logger.info("config_deleted", config_id=config_id)

    async def seed_default_config(self, created_by: str) -> JobReadinessConfig:
        """Create the global Common config from the default criteria."""
        criteria = [CriterionDefinition.model_validate(item) for item in DEFAULT_CRITERIA]
        return await self.create_config(
            school=self.settings.common_school,
            criteria=criteria,
            created_by=created_by,
        )
