"""Domain models for job-readiness-engine."""

from job_readiness_core.models.config import JobReadinessConfig
from job_readiness_core.models.criteria import (
    CriterionCategory,
    CriterionDefinition,
    CriterionType,
)
from job_readiness_core.models.progress import (
    CriterionStatus,
    CriterionStatusEntry,
    CriterionStatusPatch,
    StudentJobReadiness,
)
from job_readiness_core.models.readiness import ReadinessResult, ReadinessStatus

__all__ = [
    "CriterionCategory",
    "CriterionDefinition",
    "CriterionStatus",
    "CriterionStatusEntry",
    "CriterionStatusPatch",
    "CriterionType",
    "JobReadinessConfig",
    "ReadinessResult",
    "ReadinessStatus",
    "StudentJobReadiness",
]
