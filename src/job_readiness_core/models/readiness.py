"""Computed readiness result model."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class ReadinessStatus(StrEnum):
    """Readiness label derived from the percentage."""

    NOT_JOB_READY = "Not Job Ready"
    UNDER_PROCESS = "Job Ready Under Process"
    JOB_READY = "Job Ready"


class ReadinessResult(BaseModel):
    """Output of the scoring engine."""

    model_config = {"frozen": True}

    percentage: int = Field(ge=0, le=100, description="Weighted share of achieved criteria")
    status: ReadinessStatus = Field(description="Label for the percentage")
    is_job_ready: bool = Field(description="100% with every mandatory criterion achieved")
