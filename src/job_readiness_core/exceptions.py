"""Custom exception hierarchy for job-readiness-engine."""

from __future__ import annotations


class JobReadinessError(Exception):
    """Base exception for all job-readiness-engine errors."""


class ConfigNotFoundError(JobReadinessError):
    """Raised when a configuration document is looked up by id and does not exist."""


class DuplicateConfigError(JobReadinessError):
    """Raised when a config already exists for the same (school, campus) pair."""


class InvalidConfigError(JobReadinessError):
    """Raised when a config references an unknown school or repeats a criteria id."""


class UnknownCriterionError(JobReadinessError):
    """Raised when a write references a criteria id outside the effective set."""


class MissingRequiredProofError(JobReadinessError):
    """Raised when completing a criterion that needs proof without a proof reference."""


class InvalidTransitionError(JobReadinessError):
    """Raised when a criterion status change is not allowed from its current state."""


class InvalidFeedbackError(JobReadinessError):
    """Raised when PoC feedback is empty or a rating is out of range."""


class ProgressNotFoundError(JobReadinessError):
    """Raised when a student has no progress document yet."""


class ConcurrentModificationError(JobReadinessError):
    """Raised when another writer updated the same progress document first."""
