"""Conventional Commit policy for a commit range."""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devkit.utils.exec import run_command
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TYPES = (
    "build",
    "chore",
    "ci",
    "docs",
    "feat",
    "fix",
    "perf",
    "refactor",
    "revert",
    "style",
    "test",
)
LOG_SEPARATOR = ":::"


@dataclass
class InvalidCommit:
    hash: str
    message: str
    reason: str


@dataclass
class CommitValidationResult:
    valid: bool
    invalid_commits: list[InvalidCommit] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "invalid_commits": [vars(c) for c in self.invalid_commits]}


def conventional_commit_pattern(
    allowed_types: tuple[str, ...] | list[str] = DEFAULT_TYPES, require_scope: bool = True
) -> re.Pattern[str]:
    """Build the subject-line regex, e.g. ``feat(api): add paging``."""
    types = f"({'|'.join(re.escape(t) for t in allowed_types)})"
    scope = r"\([a-z0-9/-]+\)"
    if not require_scope:
        scope = f"({scope})?"
    return re.compile(rf"^{types}{scope}!:?\s.+|^{types}{scope}:\s.+")


def check_commit(
    commit_hash: str, parents: str, message: str, allow_merge_commits: bool, pattern: re.Pattern[str]
) -> InvalidCommit | None:
    """Return the violation for one commit, or None if it complies."""
    if len(parents.split()) > 1:
        if allow_merge_commits:
            return None
        return InvalidCommit(commit_hash, message, "Merge commits are not allowed in the range.")
    if not pattern.search(message):
        return InvalidCommit(
            commit_hash, message, "Commit message does not follow Conventional Commits."
        )
    return None


def validate_commits(
    from_ref: str = "origin/main",
    to_ref: str = "HEAD",
    allow_merge_commits: bool = False,
    allowed_types: list[str] | None = None,
    require_scope: bool = True,
    max_commits: int = 50,
    cwd: str | Path | None = None,
) -> CommitValidationResult:
    """Check every commit subject in ``from_ref..to_ref``.

    An empty range (or a range git cannot resolve) is valid.
    """
    result = run_command(
        "git",
        [
            "log",
            f"{from_ref}..{to_ref}",
            f"--max-count={max_commits}",
            f"--pretty=%H{LOG_SEPARATOR}%P{LOG_SEPARATOR}%s",
        ],
        cwd=cwd,
        check=False,
    )
    output = result.stdout.strip()
    if not output:
        return CommitValidationResult(valid=True)

    pattern = conventional_commit_pattern(tuple(allowed_types or DEFAULT_TYPES), require_scope)
    invalid = []
    for line in output.splitlines():
        commit_hash, parents, message = (line.split(LOG_SEPARATOR, 2) + ["", ""])[:3]
        violation = check_commit(commit_hash, parents, message, allow_merge_commits, pattern)
        if violation:
            invalid.append(violation)

    if invalid:
        logger.error("Found %d commit(s) violating commit policy.", len(invalid))
    else:
        logger.success("All commits follow Conventional Commit rules.")
    return CommitValidationResult(valid=not invalid, invalid_commits=invalid)
