"""Release management: notes, publish checks, flag lint, canary evaluation."""

from devkit.release.canary import (
    CanaryCheckResult,
    CanaryMetrics,
    CanaryThresholds,
    evaluate_canary,
)
from devkit.release.flags import FlagLintResult, lint_flags
from devkit.release.notes import ReleaseNotes, prepare_release_notes
from devkit.release.publish import (
    PublishVerificationResult,
    VersionSyncResult,
    sync_version_tags,
    verify_publish_state,
)

__all__ = [
    "CanaryCheckResult",
    "CanaryMetrics",
    "CanaryThresholds",
    "FlagLintResult",
    "PublishVerificationResult",
    "ReleaseNotes",
    "VersionSyncResult",
    "evaluate_canary",
    "lint_flags",
    "prepare_release_notes",
    "sync_version_tags",
    "verify_publish_state",
]
