"""Student progress models: per-criterion status entries and the progress document."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator

from job_readiness_core.models.readiness import ReadinessResult, ReadinessStatus


class CriterionStatus(StrEnum):
    """Lifecycle of one criterion for one student."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    VERIFIED = "verified"


ACHIEVED_STATUSES = frozenset({CriterionStatus.COMPLETED, CriterionStatus.VERIFIED})


class CriterionStatusEntry(BaseModel):
    """A student's progress on a single criterion."""

    criteria_id: str = Field(min_length=1, description="Criterion this entry tracks")
    status: CriterionStatus = Field(default=CriterionStatus.NOT_STARTED)
    self_reported_value: float | None = Field(
        default=None, description="Student-reported number for numeric criteria"
    )
    proof_url: str | None = Field(default=None, description="Reference to uploaded evidence")
    notes: str | None = Field(default=None, description="Student notes or reflection")

    verified_by: str | None = Field(default=None, description="Reviewer of the last decision")
    verified_at: datetime | None = Field(default=None)
    verification_notes: str | None = Field(default=None)

    poc_comment: str | None = Field(default=None)
    poc_commented_by: str | None = Field(default=None)
    poc_commented_at: datetime | None = Field(default=None)

    poc_rating: int | None = Field(default=None)
    poc_rated_by: str | None = Field(default=None)
    poc_rated_at: datetime | None = Field(default=None)

    completed_at: datetime | None = Field(default=None)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_achieved(self) -> bool:
        """Completed or verified entries count toward readiness."""
        return self.status in ACHIEVED_STATUSES

    @property
    def was_rejected(self) -> bool:
        """A reviewer sent this entry back and the student has not resubmitted."""
        return not self.is_achieved and self.verified_by is not None


class CriterionStatusPatch(BaseModel):
    """Student self-report for one criterion."""

    status: CriterionStatus = Field(description="Target status (in_progress or completed)")
    self_reported_value: float | None = Field(default=None)
    proof_url: str | None = Field(default=None)
    notes: str | None = Field(default=None)


class StudentJobReadiness(BaseModel):
    """One student's readiness document with cached scoring fields."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    student_id: str = Field(min_length=1, description="Owning student (unique)")
    school: str = Field(description="Student's school, owned by user management")
    campus_id: str | None = Field(default=None, description="Student's campus")
    criteria_status: list[CriterionStatusEntry] = Field(default_factory=list)

    # Derived from the effective criteria and entries; never authoritative
    readiness_percentage: int = Field(default=0, ge=0, le=100)
    readiness_status: ReadinessStatus = Field(default=ReadinessStatus.NOT_JOB_READY)
    is_job_ready: bool = Field(default=False)

    # Manual attestation, independent of the computed fields
    approved_as_job_ready: bool = Field(default=False)
    approved_by: str | None = Field(default=None)
    approved_at: datetime | None = Field(default=None)
    approval_notes: str | None = Field(default=None)

    version: int = Field(default=1, ge=1, description="Optimistic concurrency token")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def validate_unique_entries(self) -> StudentJobReadiness:
        """At most one status entry per criteria id."""
        ids = [entry.criteria_id for entry in self.criteria_status]
        if len(ids) != len(set(ids)):
            msg = f"duplicate criteria_status entries for student {self.student_id}"
            raise ValueError(msg)
        return self

    def find_entry(self, criteria_id: str) -> CriterionStatusEntry | None:
        """Return the entry for a criterion, or None."""
        for entry in self.criteria_status:
            if entry.criteria_id == criteria_id:
                return entry
        return None

    def upsert_entry(self, criteria_id: str) -> CriterionStatusEntry:
        """Return the existing entry for a criterion, appending a fresh one if missing."""
        entry = self.find_entry(criteria_id)
        if entry is None:
            entry = CriterionStatusEntry(criteria_id=criteria_id)
            self.criteria_status.append(entry)
        return entry

    def apply_readiness(self, result: ReadinessResult) -> bool:
        """Write a scoring result into the cached fields. Returns True if anything changed."""
        changed = (
            self.readiness_percentage != result.percentage
            or self.readiness_status != result.status
            or self.is_job_ready != result.is_job_ready
        )
        self.readiness_percentage = result.percentage
        self.readiness_status = result.status
        self.is_job_ready = result.is_job_ready
        return changed
