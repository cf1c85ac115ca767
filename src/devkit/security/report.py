"""Aggregate security check: secrets, vulnerabilities and licenses.

Each step runs independently. A step that cannot run (scanner missing,
audit output unreadable) is logged and recorded in ``errors`` without
stopping the others.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devkit.errors import ScriptError
from devkit.security.audit import AuditAdvisory, audit_dependencies
from devkit.security.compliance import (
    CompliancePolicy,
    LicenseIssue,
    get_package_licenses,
    validate_licenses,
)
from devkit.security.secrets import scan_secrets
from devkit.tools.base import ToolExecutionError, ToolNotAvailableError
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

SCANNER_CHOICES = {"gitleaks", "trufflehog", "both"}
STEP_ERRORS = (ScriptError, ToolExecutionError, ToolNotAvailableError)


@dataclass
class SecurityReport:
    secrets: list[dict[str, Any]] = field(default_factory=list)
    vulnerabilities: list[AuditAdvisory] = field(default_factory=list)
    licenses: list[LicenseIssue] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def has_findings(self) -> bool:
        return bool(self.secrets or self.vulnerabilities or self.licenses)

    def to_dict(self) -> dict[str, Any]:
        return {
            "secrets": self.secrets,
            "vulnerabilities": [v.to_dict() for v in self.vulnerabilities],
            "licenses": [item.to_dict() for item in self.licenses],
            "errors": self.errors,
            "summary": {
                "secrets": len(self.secrets),
                "vulnerabilities": len(self.vulnerabilities),
                "license_issues": len(self.licenses),
            },
        }


def run_security_check(
    scanner: str = "both",
    run_audit: bool = False,
    check_licenses: bool = False,
    cwd: str | Path | None = None,
    license_policy: CompliancePolicy | None = None,
) -> SecurityReport:
    """Run the selected security checks and collect their findings.

    Args:
        scanner: gitleaks, trufflehog or both
        run_audit: Audit dependencies at moderate+ severity, dev included
        check_licenses: Check production dependency licenses
        cwd: Repository root (default: current directory)
        license_policy: Policy for the license step (default policy if None)
    """
    if scanner not in SCANNER_CHOICES:
        raise ValueError(f"Invalid scanner: {scanner}. Valid: {SCANNER_CHOICES}")

    root = Path(cwd or Path.cwd())
    report = SecurityReport()
    scanners = ["gitleaks", "trufflehog"] if scanner == "both" else [scanner]

    for name in scanners:
        logger.info("Running secret scan with %s...", name)
        try:
            result = scan_secrets(scanner=name, source=root, cwd=root, fail_on_finding=False)
        except STEP_ERRORS as e:
            logger.warning("%s scan failed: %s", name, e)
            report.errors.append(f"{name}: {e}")
            continue
        report.secrets.extend(result.findings)

    if run_audit:
        logger.info("Running dependency vulnerability audit...")
        try:
            summary = audit_dependencies(
                package_path=root, severity_threshold="moderate", include_dev=True
            )
            report.vulnerabilities.extend(summary.advisories)
        except STEP_ERRORS as e:
            logger.warning("Audit failed: %s", e)
            report.errors.append(f"audit: {e}")

    if check_licenses:
        logger.info("Checking license compliance...")
        try:
            packages = get_package_licenses(production=True, cwd=root)
            results = validate_licenses(packages, license_policy or CompliancePolicy())
            report.licenses.extend(results.violations + results.unknown)
        except STEP_ERRORS as e:
            logger.warning("License check failed: %s", e)
            report.errors.append(f"licenses: {e}")

    logger.info(
        "Security scan summary: %d secret(s), %d vulnerabilit(ies), %d license issue(s)",
        len(report.secrets),
        len(report.vulnerabilities),
        len(report.licenses),
    )
    return report
