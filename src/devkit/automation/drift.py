"""Detect uncommitted changes under monitored paths."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devkit.utils.exec import run_command
from devkit.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class DriftReport:
    dirty_files: list[str] = field(default_factory=list)

    @property
    def drifted(self) -> bool:
        return bool(self.dirty_files)

    def to_dict(self) -> dict[str, Any]:
        return {"dirty_files": self.dirty_files}


def detect_drift(
    paths: list[str],
    include_untracked: bool = True,
    cwd: str | Path | None = None,
) -> DriftReport:
    """List files under paths that differ from HEAD according to git."""
    args = ["status", "--porcelain"]
    if not include_untracked:
        args.append("--untracked-files=no")
    args.extend(["--", *paths])

    status = run_command("git", args, cwd=cwd, check=False)
    # porcelain lines are "XY path"
    dirty = [line[3:] for line in status.stdout.splitlines() if line.strip()]

    if dirty:
        logger.warning("Drift detected:\n- %s", "\n- ".join(dirty))
    else:
        logger.success("No drift detected for monitored paths.")
    return DriftReport(dirty)
