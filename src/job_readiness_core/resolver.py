"""Resolve the effective criteria set for a student from layered configs.

Layers, lowest precedence first:

1. ``Common`` config with no campus (global default)
2. the student's school config with no campus
3. ``Common`` config scoped to the student's campus
4. the student's school config scoped to the student's campus

Criteria are folded into a dict keyed by ``criteria_id`` in that order, so a
more specific layer overwrites a definition from a broader one.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from job_readiness_core.constants import COMMON_SCHOOL
from job_readiness_core.interfaces.repository import ConfigStore
from job_readiness_core.models.config import JobReadinessConfig
from job_readiness_core.models.criteria import CriterionDefinition

logger = structlog.get_logger()


def is_applicable(
    config: JobReadinessConfig,
    school: str,
    campus_id: str | None,
    common_school: str = COMMON_SCHOOL,
) -> bool:
    """Whether a config contributes criteria for a student at (school, campus)."""
    if not config.is_active:
        return False
    if config.school not in (school, common_school):
        return False
    return config.campus_id is None or config.campus_id == campus_id


def config_precedence(
    config: JobReadinessConfig, common_school: str = COMMON_SCHOOL
) -> tuple[int, int]:
    """Sort key: global before campus-scoped, then Common before school-specific."""
    campus_rank = 0 if config.campus_id is None else 1
    school_rank = 0 if config.school == common_school else 1
    return (campus_rank, school_rank)


def criterion_applies(
    criterion: CriterionDefinition,
    config: JobReadinessConfig,
    school: str,
    common_school: str = COMMON_SCHOOL,
) -> bool:
    """Whether one criterion of an applicable config counts for the student."""
    if not criterion.is_active:
        return False
    return (
        config.school == school
        or config.school == common_school
        or school in criterion.target_schools
    )


def order_configs(
    configs: Iterable[JobReadinessConfig], common_school: str = COMMON_SCHOOL
) -> list[JobReadinessConfig]:
    """Return configs in merge order (lowest precedence first)."""
    return sorted(configs, key=lambda c: config_precedence(c, common_school))


def resolve_effective_criteria(
    configs: Iterable[JobReadinessConfig],
    school: str,
    campus_id: str | None,
    common_school: str = COMMON_SCHOOL,
) -> list[CriterionDefinition]:
    """Merge applicable configs into the student's effective criteria set.

    Pure: filters, orders and folds whatever configs it is given. An empty
    result means no criteria apply, which scoring treats as vacuously ready.
    """
    applicable = [c for c in configs if is_applicable(c, school, campus_id, common_school)]
    effective: dict[str, CriterionDefinition] = {}
    for config in order_configs(applicable, common_school):
        for criterion in config.criteria:
            if criterion_applies(criterion, config, school, common_school):
                effective[criterion.criteria_id] = criterion
    return list(effective.values())


class ConfigResolver:
    """Store-backed resolver. Reads current configs on every call."""

    def __init__(self, store: ConfigStore, common_school: str = COMMON_SCHOOL) -> None:
        """Initialize with a config store and the common sentinel name."""
        self._store = store
        self._common_school = common_school

    async def resolve(self, school: str, campus_id: str | None) -> list[CriterionDefinition]:
        """Fetch applicable configs and merge them into the effective set."""
        configs = await self._store.list_applicable([school, self._common_school], campus_id)
        criteria = resolve_effective_criteria(configs, school, campus_id, self._common_school)
        if not criteria:
            logger.info(
                "effective_criteria_empty",
                school=school,
                campus_id=campus_id,
                configs_found=len(configs),
            )
        else:
            logger.debug(
                "effective_criteria_resolved",
                school=school,
                campus_id=campus_id,
                configs_found=len(configs),
                criteria_count=len(criteria),
            )
        return criteria
