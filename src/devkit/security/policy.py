"""Combined license and vulnerability policy gate.

Policy files are JSON documents using the keys ``allowedLicenses``,
``blockedLicenses``, ``maxCriticalVulns`` and ``maxHighVulns``. Any key
left out keeps its default.
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from devkit.errors import FileError, ValidationError
from devkit.security.audit import AuditSummary
from devkit.utils.files import find_files, read_json
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

POLICY_KEYS = {
    "allowedLicenses": "allowed_licenses",
    "blockedLicenses": "blocked_licenses",
    "maxCriticalVulns": "max_critical_vulns",
    "maxHighVulns": "max_high_vulns",
}


@dataclass
class PolicyConfig:
    allowed_licenses: list[str] = field(
        default_factory=lambda: ["MIT", "Apache-2.0", "BSD-2-Clause", "BSD-3-Clause", "ISC"]
    )
    blocked_licenses: list[str] = field(default_factory=lambda: ["GPL-3.0", "AGPL-3.0"])
    max_critical_vulns: int = 0
    max_high_vulns: int = 2

    def merged(self, overrides: dict[str, Any]) -> "PolicyConfig":
        """Copy with values from a policy document (camelCase or snake_case keys)."""
        values = {}
        for key, value in overrides.items():
            name = POLICY_KEYS.get(key, key)
            if name in POLICY_KEYS.values():
                values[name] = value
        return replace(self, **values)


@dataclass
class PolicyCheckResult:
    """Outcome of a policy check. ``violations`` is empty exactly when passed."""

    passed: bool
    violations: list[str] = field(default_factory=list)
    checked_licenses: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "violations": self.violations,
            "checked_licenses": self.checked_licenses,
        }


def _audit_violations(summary: AuditSummary | None, policy: PolicyConfig) -> list[str]:
    if summary is None:
        return []
    violations = []
    critical = summary.severity_counts.get("critical", 0)
    high = summary.severity_counts.get("high", 0)
    if critical > policy.max_critical_vulns:
        violations.append(
            f"Critical vulnerabilities ({critical}) exceed policy threshold "
            f"({policy.max_critical_vulns})."
        )
    if high > policy.max_high_vulns:
        violations.append(
            f"High vulnerabilities ({high}) exceed policy threshold ({policy.max_high_vulns})."
        )
    return violations


def check_policy_compliance(
    policy_file: str | Path | None = None,
    license_report_path: str | Path | None = None,
    audit_summary: AuditSummary | None = None,
    fallback_policy: dict[str, Any] | None = None,
    root: str | Path | None = None,
) -> PolicyCheckResult:
    """Check vulnerability counts and licenses against a policy.

    With a license report (a JSON list of ``{"name", "license"}``) every
    entry must be allowlisted and not blocked. Without one, the
    package.json files below root are checked against the blocklist only.

    Args:
        policy_file: JSON policy document
        license_report_path: License report produced by a license scanner
        audit_summary: Result of audit_dependencies
        fallback_policy: Policy values used when policy_file is missing
        root: Directory scanned when there is no license report

    Raises:
        ValidationError: If the policy file or license report has the wrong shape
    """
    policy = PolicyConfig()
    if policy_file and Path(policy_file).exists():
        document = read_json(policy_file)
        if not isinstance(document, dict):
            raise ValidationError(
                f"Policy file {policy_file} must contain a JSON object", field="policy"
            )
        policy = policy.merged(document)
    elif fallback_policy:
        policy = policy.merged(fallback_policy)

    violations = _audit_violations(audit_summary, policy)
    checked: list[dict[str, str]] = []

    if license_report_path and Path(license_report_path).exists():
        report = read_json(license_report_path)
        if not isinstance(report, list):
            raise ValidationError(
                f"License report {license_report_path} must contain a JSON list",
                field="license_report",
            )
        for entry in report:
            if not isinstance(entry, dict):
                continue
            name, license_id = entry.get("name"), entry.get("license")
            checked.append({"name": name, "license": license_id})
            if license_id in policy.blocked_licenses:
                violations.append(f"Package {name} uses blocked license {license_id}.")
            if license_id not in policy.allowed_licenses:
                violations.append(f"Package {name} uses license {license_id} not in allowlist.")
    else:
        for package_file in find_files(root or Path.cwd(), r"package\.json$"):
            try:
                package = read_json(package_file)
            except FileError:
                continue
            if not isinstance(package, dict):
                continue
            name, license_id = package.get("name"), package.get("license")
            if not (name and isinstance(license_id, str)):
                continue
            checked.append({"name": name, "license": license_id})
            if license_id in policy.blocked_licenses:
                violations.append(f"Package {name} uses blocked license {license_id}.")

    passed = not violations
    if passed:
        logger.success("Policy compliance check passed.")
    else:
        logger.error("Policy compliance failed:\n- %s", "\n- ".join(violations))
    return PolicyCheckResult(passed=passed, violations=violations, checked_licenses=checked)
