"""Automation helpers for working across repositories and environments."""

from devkit.automation.bulk import BulkTaskResult, run_bulk_repo_task
from devkit.automation.drift import DriftReport, detect_drift
from devkit.automation.env import (
    CommandRequirement,
    EnvValidationResult,
    compare_semver,
    validate_env,
)

__all__ = [
    "BulkTaskResult",
    "CommandRequirement",
    "DriftReport",
    "EnvValidationResult",
    "compare_semver",
    "detect_drift",
    "run_bulk_repo_task",
    "validate_env",
]
