"""Job readiness configuration document model."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from job_readiness_core.constants import ALL_CAMPUSES
from job_readiness_core.models.criteria import CriterionDefinition


class JobReadinessConfig(BaseModel):
    """Criteria for one school, optionally narrowed to one campus."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="Config identifier")
    school: str = Field(min_length=1, description="School name, or the common sentinel")
    campus_id: str | None = Field(
        default=None, description="Campus reference; None applies to every campus"
    )
    criteria: list[CriterionDefinition] = Field(
        default_factory=list, description="Ordered criterion definitions"
    )
    is_active: bool = Field(default=True, description="Inactive configs never resolve")
    created_by: str = Field(description="User who authored the config")
    updated_by: str | None = Field(default=None, description="User who last edited it")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("campus_id")
    @classmethod
    def validate_campus_id(cls, value: str | None) -> str | None:
        """A campus reference is non-blank and never the all-campuses key."""
        if value is None:
            return value
        if not value.strip():
            msg = "campus_id must not be blank; use None for every campus"
            raise ValueError(msg)
        if value == ALL_CAMPUSES:
            msg = f"campus_id '{ALL_CAMPUSES}' is reserved for configs without a campus"
            raise ValueError(msg)
        return value

    @model_validator(mode="after")
    def validate_unique_criteria(self) -> JobReadinessConfig:
        """Criteria ids must be unique inside one config."""
        seen: set[str] = set()
        for criterion in self.criteria:
            if criterion.criteria_id in seen:
                msg = f"duplicate criteria_id '{criterion.criteria_id}' in config"
                raise ValueError(msg)
            seen.add(criterion.criteria_id)
        return self

    @property
    def is_global(self) -> bool:
        """True when the config applies to all campuses of its school."""
        return self.campus_id is None
