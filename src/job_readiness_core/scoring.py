"""Readiness scoring engine: pure function over criteria and status entries."""

from __future__ import annotations

import math
from collections.abc import Iterable

from job_readiness_core.constants import JOB_READY_PERCENTAGE, UNDER_PROCESS_THRESHOLD
from job_readiness_core.models.criteria import CriterionDefinition
from job_readiness_core.models.progress import CriterionStatusEntry
from job_readiness_core.models.readiness import ReadinessResult, ReadinessStatus

VACUOUSLY_READY = ReadinessResult(
    percentage=JOB_READY_PERCENTAGE,
    status=ReadinessStatus.JOB_READY,
    is_job_ready=True,
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for non-negative input."""
    return math.floor(value + 0.5)


def status_label(
    percentage: int, under_process_threshold: int = UNDER_PROCESS_THRESHOLD
) -> ReadinessStatus:
    """Map a percentage to its readiness label."""
    if percentage == JOB_READY_PERCENTAGE:
        return ReadinessStatus.JOB_READY
    if percentage >= under_process_threshold:
        return ReadinessStatus.UNDER_PROCESS
    return ReadinessStatus.NOT_JOB_READY


def compute_readiness(
    effective_criteria: Iterable[CriterionDefinition],
    status_entries: Iterable[CriterionStatusEntry],
    under_process_threshold: int = UNDER_PROCESS_THRESHOLD,
) -> ReadinessResult:
    """Compute weighted percentage, label and the mandatory-gated Job Ready flag.

    A criterion is achieved when its entry is completed or verified. Entries
    for criteria outside the effective set are ignored. An empty effective
    set is vacuously ready.
    """
    criteria = list(effective_criteria)
    if not criteria:
        return VACUOUSLY_READY

    achieved_ids = {entry.criteria_id for entry in status_entries if entry.is_achieved}

    total_weight = 0.0
    achieved_weight = 0.0
    all_mandatory_achieved = True
    for criterion in criteria:
        total_weight += criterion.weight
        achieved = criterion.criteria_id in achieved_ids
        if achieved:
            achieved_weight += criterion.weight
        elif criterion.is_mandatory:
            all_mandatory_achieved = False

    percentage = round_half_up(achieved_weight / total_weight * 100) if total_weight > 0 else 0

    return ReadinessResult(
        percentage=percentage,
        status=status_label(percentage, under_process_threshold),
        is_job_ready=percentage == JOB_READY_PERCENTAGE and all_mandatory_achieved,
    )
