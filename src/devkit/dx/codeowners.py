"""CODEOWNERS coverage for changed files."""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devkit.utils.exec import run_command
from devkit.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CodeownersRule:
    pattern: str
    owners: list[str]

    def matches(self, path: str) -> bool:
        return glob_to_regex(self.pattern).match(path) is not None


@dataclass
class CodeownersReport:
    missing_owners: list[str] = field(default_factory=list)
    rules_evaluated: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"missing_owners": self.missing_owners, "rules_evaluated": self.rules_evaluated}


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Anchored regex for a CODEOWNERS glob. ``*`` also crosses slashes."""
    escaped = re.escape(pattern).replace(r"\*", ".*").replace(r"\?", ".")
    return re.compile(f"^{escaped}$")


def parse_codeowners(content: str) -> list[CodeownersRule]:
    rules = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        pattern, *owners = line.split()
        if owners:
            rules.append(CodeownersRule(pattern, owners))
    return rules


def _changed_files(root: Path) -> list[str]:
    status = run_command("git", ["status", "--porcelain"], cwd=root, check=False)
    return [line[3:].strip() for line in status.stdout.splitlines() if line[3:].strip()]


def check_codeowners_coverage(
    files: list[str] | None = None, root: str | Path | None = None
) -> CodeownersReport:
    """Find files no rule in ``.github/CODEOWNERS`` matches.

    Args:
        files: Paths to check (default: files changed according to git status)
        root: Repository root (default: current directory)
    """
    root_dir = Path(root or Path.cwd())
    codeowners = root_dir / ".github" / "CODEOWNERS"
    if not codeowners.exists():
        logger.warning("CODEOWNERS file not found; skipping coverage check.")
        return CodeownersReport()

    rules = parse_codeowners(codeowners.read_text(encoding="utf-8"))
    candidates = files or _changed_files(root_dir)
    missing = [path for path in candidates if not any(rule.matches(path) for rule in rules)]

    if missing:
        logger.warning("CODEOWNERS missing for:\n- %s", "\n- ".join(missing))
    else:
        logger.success("All changed files have CODEOWNERS coverage.")
    return CodeownersReport(missing, len(rules))
