"""Criterion definition models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from job_readiness_core.constants import POC_RATING_SCALE


class CriterionCategory(StrEnum):
    """Grouping used to present criteria."""

    PROFILE = "profile"
    SKILLS = "skills"
    TECHNICAL = "technical"
    PREPARATION = "preparation"
    ACADEMIC = "academic"
    OTHER = "other"


class CriterionType(StrEnum):
    """How a student answers a criterion."""

    ANSWER = "answer"
    LINK = "link"
    YES_NO = "yes_no"
    COMMENT = "comment"


class CriterionDefinition(BaseModel):
    """A single checkable readiness requirement embedded in a config."""

    criteria_id: str = Field(min_length=1, description="Identifier, unique within its config")
    name: str = Field(description="Display name")
    description: str | None = Field(default=None, description="What the student must do")
    category: CriterionCategory = Field(
        default=CriterionCategory.OTHER, description="Presentation group"
    )
    type: CriterionType = Field(default=CriterionType.ANSWER, description="Answer type")
    is_active: bool = Field(default=True, description="Inactive criteria never resolve")
    is_mandatory: bool = Field(
        default=True, description="Must be achieved for the computed Job Ready flag"
    )
    weight: float = Field(default=1, ge=0, description="Share of the readiness percentage")
    numeric_target: float | None = Field(
        default=None, description="Threshold for numeric criteria (e.g. 50 DSA problems)"
    )
    requires_proof: bool = Field(
        default=False, description="Completion needs a proof reference"
    )
    poc_comment_required: bool = Field(default=False, description="PoC must leave a comment")
    poc_comment_template: str | None = Field(default=None, description="Suggested PoC comment")
    poc_rating_required: bool = Field(default=False, description="PoC must leave a rating")
    poc_rating_scale: int = Field(default=POC_RATING_SCALE, description="Rating scale (fixed)")
    target_schools: set[str] = Field(
        default_factory=set,
        description="Schools this criterion targets; empty inherits the config's scope",
    )
    link: str | None = Field(default=None, description="Optional reference URL")

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: object) -> object:
        """Accept the legacy 'yes/no' spelling."""
        if value == "yes/no":
            return CriterionType.YES_NO
        return value

    @field_validator("poc_rating_scale")
    @classmethod
    def validate_rating_scale(cls, value: int) -> int:
        """Only the fixed four-point scale is supported."""
        if value != POC_RATING_SCALE:
            msg = f"poc_rating_scale must be {POC_RATING_SCALE}, got {value}"
            raise ValueError(msg)
        return value

    @property
    def needs_proof(self) -> bool:
        """Whether completing this criterion requires a proof reference."""
        return self.requires_proof or self.type == CriterionType.LINK
