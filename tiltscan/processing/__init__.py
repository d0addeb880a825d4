"""
Batch assessment over photo files.
"""

from .runner import (
    AssessmentRunner,
    AssessmentReport,
    RunnerConfig,
    load_orientation_map,
    load_sidecar,
)

__all__ = [
    "AssessmentRunner",
    "AssessmentReport",
    "RunnerConfig",
    "load_orientation_map",
    "load_sidecar",
]
