"""Verification workflow: every mutation of a student's readiness document.

Each operation reads the current configuration and progress document,
applies one change, recomputes readiness from scratch and writes the
document back under an optimistic version check. A writer that loses a
race is retried with fresh state.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from job_readiness_core.config.settings import Settings
from job_readiness_core.exceptions import (
    ConcurrentModificationError,
    InvalidFeedbackError,
    InvalidTransitionError,
    MissingRequiredProofError,
    ProgressNotFoundError,
    UnknownCriterionError,
)
from job_readiness_core.interfaces.repository import ConfigStore, ProgressStore
from job_readiness_core.models.criteria import CriterionDefinition
from job_readiness_core.models.progress import (
    CriterionStatus,
    CriterionStatusPatch,
    StudentJobReadiness,
)
from job_readiness_core.models.readiness import ReadinessResult
from job_readiness_core.resolver import ConfigResolver
from job_readiness_core.scoring import compute_readiness
from job_readiness_infra.db.repositories.config_repo import ConfigRepository
from job_readiness_infra.db.repositories.progress_repo import ProgressRepository
from job_readiness_infra.db.session import session_scope
from job_readiness_services.observability.logging import student_log_context

logger = structlog.get_logger()

# Statuses a student may set directly
STUDENT_STATUSES = frozenset({CriterionStatus.IN_PROGRESS, CriterionStatus.COMPLETED})

Mutation = Callable[[StudentJobReadiness, dict[str, CriterionDefinition]], None]
ProgressStoreFactory = Callable[[AsyncSession], ProgressStore]
ConfigStoreFactory = Callable[[AsyncSession], ConfigStore]


def _now() -> datetime:
    return datetime.now(UTC)


def _require_criterion(
    criteria: dict[str, CriterionDefinition], criteria_id: str
) -> CriterionDefinition:
    """Look up a criterion in the effective set or raise UnknownCriterionError."""
    criterion = criteria.get(criteria_id)
    if criterion is None:
        raise UnknownCriterionError(
            f"criterion {criteria_id!r} is not in the student's effective criteria"
        )
    return criterion


def _log_conflict(retry_state: RetryCallState) -> None:
    """Log a lost optimistic write before retrying."""
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "write_conflict_retry",
        attempt=retry_state.attempt_number,
        error=str(exc),
    )


class VerificationWorkflow:
    """Student self-report, PoC verification/feedback and manual Job Ready approval."""

    def __init__(
        self,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        progress_store_factory: ProgressStoreFactory = ProgressRepository,
        config_store_factory: ConfigStoreFactory = ConfigRepository,
    ) -> None:
        """Initialize with settings, a session factory and per-session store builders."""
        self.settings = settings
        self._session_factory = session_factory
        self._progress_store = progress_store_factory
        self._config_store = config_store_factory

    # --- Reads -----------------------------------------------------------------

    async def resolve_effective_criteria(
        self, school: str, campus_id: str | None
    ) -> list[CriterionDefinition]:
        """Current effective criteria for a (school, campus) pair."""
        async with self._session_factory() as session:
            return await self._resolver(session).resolve(school, campus_id)

    async def get_progress(self, student_id: str) -> StudentJobReadiness:
        """Return a student's document with freshly recomputed readiness."""
        return await self.refresh_progress(student_id)

    async def refresh_progress(self, student_id: str) -> StudentJobReadiness:
        """Recompute readiness against current config, saving only if it changed."""

        async def operation(session: AsyncSession) -> StudentJobReadiness:
            repo = self._progress_store(session)
            progress = await self._load(repo, student_id)
            criteria = await self._resolver(session).resolve(progress.school, progress.campus_id)
            if progress.apply_readiness(self._score(criteria, progress)):
                progress.updated_at = _now()
                await repo.save(progress)
                self._log_recomputed(progress)
            return progress

        with student_log_context(student_id):
            return await self._with_retries(operation)

    async def recompute_school(self, school: str) -> list[StudentJobReadiness]:
        """Batch recompute every progress document of a school."""
        async with self._session_factory() as session:
            documents = await self._progress_store(session).list_by_school(school)
        student_ids = [p.student_id for p in documents]
        refreshed = [await self.refresh_progress(student_id) for student_id in student_ids]
        logger.info("school_recomputed", school=school, students=len(refreshed))
        return refreshed

    # --- Writes ----------------------------------------------------------------

    async def get_or_create_progress(
        self, student_id: str, school: str, campus_id: str | None
    ) -> StudentJobReadiness:
        """Return the student's document, creating it lazily on first interaction.

        An existing document follows the student's current school and campus
        as reported by user management.
        """

        async def operation(session: AsyncSession) -> StudentJobReadiness:
            repo = self._progress_store(session)
            criteria = await self._resolver(session).resolve(school, campus_id)
            progress = await repo.get_by_student(student_id)
            if progress is None:
                progress = StudentJobReadiness(
                    student_id=student_id, school=school, campus_id=campus_id
                )
                progress.apply_readiness(self._score(criteria, progress))
                await repo.create(progress)
                logger.info(
                    "progress_created",
                    school=school,
                    campus_id=campus_id,
                    readiness_percentage=progress.readiness_percentage,
                )
                return progress

            moved = progress.school != school or progress.campus_id != campus_id
            if moved:
                logger.info(
                    "progress_scope_changed",
                    old_school=progress.school,
                    new_school=school,
                    old_campus_id=progress.campus_id,
                    new_campus_id=campus_id,
                )
                progress.school = school
                progress.campus_id = campus_id
            changed = progress.apply_readiness(self._score(criteria, progress))
            if moved or changed:
                progress.updated_at = _now()
                await repo.save(progress)
                self._log_recomputed(progress)
            return progress

        with student_log_context(student_id):
            return await self._with_retries(operation)

    async def upsert_criterion_status(
        self, student_id: str, criteria_id: str, patch: CriterionStatusPatch
    ) -> StudentJobReadiness:
        """Apply a student's self-report to one criterion.

        Raises UnknownCriterionError, InvalidTransitionError or
        MissingRequiredProofError; nothing is stored when validation fails.
        """

        def mutate(
            progress: StudentJobReadiness, criteria: dict[str, CriterionDefinition]
        ) -> None:
            criterion = _require_criterion(criteria, criteria_id)
            if patch.status not in STUDENT_STATUSES:
                raise InvalidTransitionError(
                    f"students may only set in_progress or completed, not {patch.status}"
                )
            existing = progress.find_entry(criteria_id)
            if existing is not None and existing.status == CriterionStatus.VERIFIED:
                raise InvalidTransitionError(f"criterion {criteria_id!r} is already verified")

            # Blank patch values never replace stored ones
            new_proof_url = (patch.proof_url or "").strip() or None
            proof_url = new_proof_url or (existing.proof_url if existing else None)
            completing = patch.status == CriterionStatus.COMPLETED
            if completing and criterion.needs_proof and not proof_url:
                raise MissingRequiredProofError(
                    f"criterion {criteria_id!r} requires proof to be marked completed"
                )

            now = _now()
            entry = progress.upsert_entry(criteria_id)
            if patch.status == CriterionStatus.COMPLETED:
                if entry.status != CriterionStatus.COMPLETED:
                    entry.completed_at = now
                    # Resubmission after a rejection goes back to pending review
                    entry.verified_by = None
                    entry.verified_at = None
            else:
                entry.completed_at = None
            entry.status = patch.status
            if patch.self_reported_value is not None:
                entry.self_reported_value = patch.self_reported_value
            if new_proof_url is not None:
                entry.proof_url = new_proof_url
            if patch.notes is not None:
                entry.notes = patch.notes
            entry.updated_at = now

        return await self._mutate(
            student_id,
            student_id,
            mutate,
            "criterion_status_updated",
            criteria_id=criteria_id,
            status=str(patch.status),
        )

    async def verify_criterion(
        self,
        student_id: str,
        criteria_id: str,
        verifier_id: str,
        notes: str | None = None,
    ) -> StudentJobReadiness:
        """Elevate a completed criterion to verified."""

        def mutate(
            progress: StudentJobReadiness, criteria: dict[str, CriterionDefinition]
        ) -> None:
            _require_criterion(criteria, criteria_id)
            entry = progress.find_entry(criteria_id)
            if entry is None or entry.status != CriterionStatus.COMPLETED:
                current = entry.status if entry else CriterionStatus.NOT_STARTED
                raise InvalidTransitionError(
                    f"only completed criteria can be verified; {criteria_id!r} is {current}"
                )
            now = _now()
            entry.status = CriterionStatus.VERIFIED
            entry.verified_by = verifier_id
            entry.verified_at = now
            entry.verification_notes = notes
            entry.updated_at = now

        return await self._mutate(
            student_id, verifier_id, mutate, "criterion_verified", criteria_id=criteria_id
        )

    async def reject_criterion(
        self,
        student_id: str,
        criteria_id: str,
        reviewer_id: str,
        notes: str,
    ) -> StudentJobReadiness:
        """Send a completed criterion back to in_progress with reviewer feedback."""

        def mutate(
            progress: StudentJobReadiness, criteria: dict[str, CriterionDefinition]
        ) -> None:
            _require_criterion(criteria, criteria_id)
            if not notes or not notes.strip():
                raise InvalidFeedbackError("rejecting a criterion requires feedback notes")
            entry = progress.find_entry(criteria_id)
            if entry is None or entry.status != CriterionStatus.COMPLETED:
                current = entry.status if entry else CriterionStatus.NOT_STARTED
                raise InvalidTransitionError(
                    f"only completed criteria can be rejected; {criteria_id!r} is {current}"
                )
            now = _now()
            entry.status = CriterionStatus.IN_PROGRESS
            entry.completed_at = None
            entry.verified_by = reviewer_id
            entry.verified_at = now
            entry.verification_notes = notes
            entry.updated_at = now

        return await self._mutate(
            student_id, reviewer_id, mutate, "criterion_rejected", criteria_id=criteria_id
        )

    async def comment_or_rate(
        self,
        student_id: str,
        criteria_id: str,
        verifier_id: str,
        comment: str | None = None,
        rating: int | None = None,
    ) -> StudentJobReadiness:
        """Record PoC feedback at any status without changing achievement."""

        def mutate(
            progress: StudentJobReadiness, criteria: dict[str, CriterionDefinition]
        ) -> None:
            criterion = _require_criterion(criteria, criteria_id)
            if comment is None and rating is None:
                raise InvalidFeedbackError("provide a comment, a rating, or both")
            if comment is not None and not comment.strip():
                raise InvalidFeedbackError("comment must not be blank")
            if rating is not None and not 1 <= rating <= criterion.poc_rating_scale:
                raise InvalidFeedbackError(
                    f"rating must be between 1 and {criterion.poc_rating_scale}, got {rating}"
                )
            now = _now()
            entry = progress.upsert_entry(criteria_id)
            if comment is not None:
                entry.poc_comment = comment
                entry.poc_commented_by = verifier_id
                entry.poc_commented_at = now
            if rating is not None:
                entry.poc_rating = rating
                entry.poc_rated_by = verifier_id
                entry.poc_rated_at = now
            entry.updated_at = now

        return await self._mutate(
            student_id,
            verifier_id,
            mutate,
            "criterion_feedback_recorded",
            criteria_id=criteria_id,
            has_comment=comment is not None,
            rating=rating,
        )

    async def approve_job_ready(
        self, student_id: str, approver_id: str, notes: str | None = None
    ) -> StudentJobReadiness:
        """Manually attest the student as Job Ready, independent of the computed flag."""

        def mutate(
            progress: StudentJobReadiness, criteria: dict[str, CriterionDefinition]
        ) -> None:
            progress.approved_as_job_ready = True
            progress.approved_by = approver_id
            progress.approved_at = _now()
            progress.approval_notes = notes

        progress = await self._mutate(student_id, approver_id, mutate, "job_ready_approved")
        if not progress.is_job_ready:
            logger.warning(
                "job_ready_approved_as_exception",
                student_id=student_id,
                actor_id=approver_id,
                readiness_percentage=progress.readiness_percentage,
            )
        return progress

    async def revoke_job_ready_approval(
        self, student_id: str, revoker_id: str, notes: str | None = None
    ) -> StudentJobReadiness:
        """Clear a manual Job Ready attestation."""

        def mutate(
            progress: StudentJobReadiness, criteria: dict[str, CriterionDefinition]
        ) -> None:
            progress.approved_as_job_ready = False
            progress.approved_by = None
            progress.approved_at = None
            progress.approval_notes = notes

        return await self._mutate(student_id, revoker_id, mutate, "job_ready_approval_revoked")

    # --- Internals -------------------------------------------------------------

    def _resolver(self, session: AsyncSession) -> ConfigResolver:
        return ConfigResolver(self._config_store(session), self.settings.common_school)

    def _score(
        self, criteria: list[CriterionDefinition], progress: StudentJobReadiness
    ) -> ReadinessResult:
        return compute_readiness(
            criteria, progress.criteria_status, self.settings.under_process_threshold
        )

    async def _load(self, repo: ProgressStore, student_id: str) -> StudentJobReadiness:
        progress = await repo.get_by_student(student_id)
        if progress is None:
            raise ProgressNotFoundError(f"no readiness progress for student {student_id}")
        return progress

    async def _mutate(
        self,
        student_id: str,
        actor_id: str,
        mutate: Mutation,
        event: str,
        **log_context: object,
    ) -> StudentJobReadiness:
        """Load, mutate, recompute from scratch and save one student's document.

        Everything logged while the change runs carries ``student_id`` and
        ``actor_id``.
        """

        async def operation(session: AsyncSession) -> StudentJobReadiness:
            repo = self._progress_store(session)
            progress = await self._load(repo, student_id)
            criteria = await self._resolver(session).resolve(progress.school, progress.campus_id)
            mutate(progress, {c.criteria_id: c for c in criteria})
            progress.apply_readiness(self._score(criteria, progress))
            progress.updated_at = _now()
            return await repo.save(progress)

        with student_log_context(student_id, actor_id):
            progress = await self._with_retries(operation)
            logger.info(
                event,
                readiness_percentage=progress.readiness_percentage,
                readiness_status=str(progress.readiness_status),
                is_job_ready=progress.is_job_ready,
                **log_context,
            )
        return progress

    async def _with_retries(
        self, operation: Callable[[AsyncSession], Awaitable[StudentJobReadiness]]
    ) -> StudentJobReadiness:
        """Run an operation in its own unit of work, retrying lost version races."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.settings.max_write_retries),
            wait=wait_exponential(multiplier=self.settings.write_retry_wait_seconds, max=1),
            retry=retry_if_exception_type(ConcurrentModificationError),
            before_sleep=_log_conflict,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                async with session_scope(self._session_factory) as session:
                    result = await operation(session)
        return result

    def _log_recomputed(self, progress: StudentJobReadiness) -> None:
        logger.info(
            "readiness_recomputed",
            readiness_percentage=progress.readiness_percentage,
            readiness_status=str(progress.readiness_status),
            is_job_ready=progress.is_job_ready,
        )
