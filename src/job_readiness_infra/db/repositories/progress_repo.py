"""Progress repository: one StudentJobReadiness document per student."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from job_readiness_core.exceptions import ConcurrentModificationError
from job_readiness_core.models.progress import StudentJobReadiness
from job_readiness_infra.db.models import StudentReadinessModel


def _as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes returned by SQLite."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def _to_domain(row: StudentReadinessModel) -> StudentJobReadiness:
    """Convert an ORM row into a progress document."""
    return StudentJobReadiness.model_validate(
        {
            "id": row.id,
            "student_id": row.student_id,
            "school": row.school,
            "campus_id": row.campus_id,
            "criteria_status": row.criteria_status_json,
            "readiness_percentage": row.readiness_percentage,
            "readiness_status": row.readiness_status,
            "is_job_ready": row.is_job_ready,
            "approved_as_job_ready": row.approved_as_job_ready,
            "approved_by": row.approved_by,
            "approved_at": _as_utc(row.approved_at),
            "approval_notes": row.approval_notes,
            "version": row.version,
            "created_at": _as_utc(row.created_at),
            "updated_at": _as_utc(row.updated_at),
        }
    )


def _column_values(progress: StudentJobReadiness) -> dict[str, object]:
    """Mutable column values of a progress document."""
    return {
        "school": progress.school,
        "campus_id": progress.campus_id,
        "criteria_status_json": [e.model_dump(mode="json") for e in progress.criteria_status],
        "readiness_percentage": progress.readiness_percentage,
        "readiness_status": str(progress.readiness_status),
        "is_job_ready": progress.is_job_ready,
        "approved_as_job_ready": progress.approved_as_job_ready,
        "approved_by": progress.approved_by,
        "approved_at": progress.approved_at,
        "approval_notes": progress.approval_notes,
        "updated_at": progress.updated_at,
    }


class ProgressRepository:
    """Progress persistence with optimistic versioning."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize with an async session."""
        self._session = session

    async def get_by_student(self, student_id: str) -> StudentJobReadiness | None:
        """Retrieve a student's progress document."""
        stmt = (
            select(StudentReadinessModel)
            .where(StudentReadinessModel.student_id == student_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        return _to_domain(row) if row else None

    async def create(self, progress: StudentJobReadiness) -> StudentJobReadiness:
        """Create a progress document.

        A concurrent creation for the same student violates the unique
        constraint; the session is rolled back and the conflict surfaced.
        """
        row = StudentReadinessModel(
            id=progress.id,
            student_id=progress.student_id,
            version=progress.version,
            created_at=progress.created_at,
            **_column_values(progress),
        )
        self._session.add(row)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            await self._session.rollback()
            raise ConcurrentModificationError(
                f"progress for student {progress.student_id} was created concurrently"
            ) from exc
        return progress

    async def save(self, progress: StudentJobReadiness) -> StudentJobReadiness:
        """Write the document if nobody else has since the caller read it.

        Bumps ``progress.version`` on success. Raises ConcurrentModificationError
        when the stored version no longer matches.
        """
        stmt = (
            update(StudentReadinessModel)
            .where(
                StudentReadinessModel.id == progress.id,
                StudentReadinessModel.version == progress.version,
            )
            .values(version=progress.version + 1, **_column_values(progress))
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount != 1:  # type: ignore[attr-defined]
            raise ConcurrentModificationError(
                f"progress for student {progress.student_id} changed since version "
                f"{progress.version}"
            )
        progress.version += 1
        return progress

    async def list_by_school(self, school: str) -> list[StudentJobReadiness]:
        """List progress documents for a school."""
        stmt = (
            select(StudentReadinessModel)
            .where(StudentReadinessModel.school == school)
            .order_by(StudentReadinessModel.student_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [_to_domain(row) for row in result.scalars().all()]
