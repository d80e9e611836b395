"""Public interface re-exports for job_readiness_core."""

from job_readiness_core.interfaces.repository import ConfigStore, ProgressStore

__all__ = [
    "ConfigStore",
    "ProgressStore",
]
