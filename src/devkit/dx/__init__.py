"""Developer-experience guardrails for commits, configs and ownership."""

from devkit.dx.codeowners import CodeownersReport, check_codeowners_coverage
from devkit.dx.commits import CommitValidationResult, validate_commits
from devkit.dx.monorepo import MonorepoValidationSummary, validate_monorepo_configs
from devkit.dx.shared_configs import SharedConfigResult, ensure_shared_configs

__all__ = [
    "CodeownersReport",
    "CommitValidationResult",
    "MonorepoValidationSummary",
    "SharedConfigResult",
    "check_codeowners_coverage",
    "ensure_shared_configs",
    "validate_commits",
    "validate_monorepo_configs",
]
