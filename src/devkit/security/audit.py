"""Dependency vulnerability audit via ``npm audit`` / ``pnpm audit``.

The audit JSON differs between package managers and versions. Three
shapes are understood, tried in order: the legacy ``advisories`` map, the
npm 7+ ``vulnerabilities`` map, and bare ``metadata.vulnerabilities``
counts.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devkit.errors import FileError
from devkit.npm import find_package_json, get_package_manager
from devkit.utils.exec import run_command
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

SEVERITY_ORDER = ("info", "low", "moderate", "high", "critical")


def severity_at_least(severity: str, threshold: str) -> bool:
    """True if severity is at or above threshold. Unknown severities rank lowest."""
    rank = SEVERITY_ORDER.index(severity) if severity in SEVERITY_ORDER else -1
    return rank >= SEVERITY_ORDER.index(threshold)


@dataclass
class AuditAdvisory:
    """One vulnerable module reported by the audit."""

    module: str
    severity: str
    title: str | None = None
    url: str | None = None
    range: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "module": self.module,
            "severity": self.severity,
            "title": self.title,
            "url": self.url,
            "range": self.range,
        }


@dataclass
class AuditSummary:
    """Vulnerability counts at or above the requested severity.

    Attributes:
        total: Number of advisories, or the sum of counts when the audit
            only reported counts
        severity_counts: Count per severity level
        advisories: Individual advisories (may be empty)
    """

    total: int = 0
    severity_counts: dict[str, int] = field(
        default_factory=lambda: dict.fromkeys(SEVERITY_ORDER, 0)
    )
    advisories: list[AuditAdvisory] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "severity_counts": dict(self.severity_counts),
            "advisories": [a.to_dict() for a in self.advisories],
        }


def pick_json_object(payload: str) -> Any:
    """Parse audit output, tolerating banner lines around the JSON.

    The whole text is tried first, then each line from the last to the
    first. Returns an empty dict when nothing parses.
    """
    text = payload.strip()
    if not text:
        return {}

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    for line in reversed(text.split("\n")):
        try:
            return json.loads(line)
        except json.JSONDecodeError:
            continue
    return {}


def summarize_audit(raw: Any, severity_threshold: str = "low") -> AuditSummary:
    """Reduce raw audit JSON to an AuditSummary."""
    summary = AuditSummary()
    data = raw if isinstance(raw, dict) else {}

    if data.get("advisories"):
        for advisory in data["advisories"].values():
            severity = advisory.get("severity", "info")
            if not severity_at_least(severity, severity_threshold):
                continue
            summary.advisories.append(
                AuditAdvisory(
                    module=advisory.get("module_name", ""),
                    severity=severity,
                    title=advisory.get("title"),
                    url=advisory.get("url"),
                    range=advisory.get("vulnerable_versions"),
                )
            )
            summary.severity_counts[severity] = summary.severity_counts.get(severity, 0) + 1

    elif data.get("vulnerabilities"):
        for module, vuln in data["vulnerabilities"].items():
            severity = vuln.get("severity") or "info"
            if not severity_at_least(severity, severity_threshold):
                continue
            via = (vuln.get("via") or [None])[0]
            details = via if isinstance(via, dict) else {}
            summary.advisories.append(
                AuditAdvisory(
                    module=module,
                    severity=severity,
                    title=details.get("title"),
                    url=details.get("url"),
                    range=details.get("range"),
                )
            )
            summary.severity_counts[severity] = summary.severity_counts.get(severity, 0) + 1

    elif (data.get("metadata") or {}).get("vulnerabilities"):
        for level, count in data["metadata"]["vulnerabilities"].items():
            if level in SEVERITY_ORDER and severity_at_least(level, severity_threshold):
                summary.severity_counts[level] += count or 0

    summary.total = len(summary.advisories) or sum(summary.severity_counts.values())
    return summary


def audit_dependencies(
    package_path: str | Path | None = None,
    severity_threshold: str = "low",
    include_dev: bool = False,
    cwd: str | Path | None = None,
) -> AuditSummary:
    """Run the package manager's audit and summarise it.

    Args:
        package_path: Directory to start the package.json search from
        severity_threshold: Lowest severity counted
        include_dev: Audit devDependencies instead of production ones
        cwd: Directory to run the audit in (default: the package directory)

    Raises:
        FileError: If no package.json is found
        ValueError: If the threshold is not a known severity
    """
    if severity_threshold not in SEVERITY_ORDER:
        raise ValueError(
            f"Invalid severity threshold: {severity_threshold}. Valid: {set(SEVERITY_ORDER)}"
        )

    start = Path(package_path or Path.cwd())
    package_json = find_package_json(start)
    if package_json is None:
        raise FileError(f"Could not locate package.json near {start}", str(start), "access")

    manager = "pnpm" if get_package_manager(package_json) == "pnpm" else "npm"
    if manager == "pnpm":
        args = ["audit", "--json", "--dev" if include_dev else "--prod"]
    else:
        args = ["audit", "--json", "--dev" if include_dev else "--production"]

    result = run_command(manager, args, cwd=cwd or package_json.parent, check=False)
    summary = summarize_audit(pick_json_object(result.stdout), severity_threshold)

    if summary.total == 0:
        logger.success("Dependency audit is clean for the selected threshold.")
    else:
        logger.warning(
            "Dependency audit found %d issue(s) at %s+ severity.", summary.total, severity_threshold
        )
    return summary
