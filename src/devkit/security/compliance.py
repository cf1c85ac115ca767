"""Dependency license compliance.

Collects the license of every installed dependency (``license-checker``
with a ``pnpm licenses`` fallback) and classifies each package against an
allowlist, a blocklist, a review list and per-package exemptions.
"""

import json
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from devkit.config import (
    DEFAULT_ALLOWED_LICENSES,
    DEFAULT_BLOCKED_LICENSES,
    DEFAULT_REVIEW_LICENSES,
)
from devkit.errors import CommandError, FileError
from devkit.utils.exec import run_command
from devkit.utils.files import read_json, write_json
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

UNKNOWN = "UNKNOWN"


@dataclass
class CompliancePolicy:
    allowlist: list[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_LICENSES))
    blocklist: list[str] = field(default_factory=lambda: list(DEFAULT_BLOCKED_LICENSES))
    warnings: list[str] = field(default_factory=lambda: list(DEFAULT_REVIEW_LICENSES))
    exemptions: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "allowlist": self.allowlist,
            "blocklist": self.blocklist,
            "warnings": self.warnings,
            "exemptions": self.exemptions,
        }


@dataclass
class LicenseIssue:
    package: str
    license: str
    severity: str
    reason: str
    path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "package": self.package,
            "license": self.license,
            "severity": self.severity,
            "reason": self.reason,
            "path": self.path,
        }


@dataclass
class ComplianceResults:
    total: int = 0
    compliant: int = 0
    violations: list[LicenseIssue] = field(default_factory=list)
    warnings: list[LicenseIssue] = field(default_factory=list)
    unknown: list[LicenseIssue] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.violations and not self.unknown

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "compliant": self.compliant,
            "violations": [v.to_dict() for v in self.violations],
            "warnings": [w.to_dict() for w in self.warnings],
            "unknown": [u.to_dict() for u in self.unknown],
        }


def load_compliance_policy(config_path: str | Path | None = None) -> CompliancePolicy:
    """Default policy, with top-level keys replaced by a JSON config file."""
    policy = CompliancePolicy()
    if not config_path or not Path(config_path).exists():
        return policy

    logger.info("Loading policy from %s", config_path)
    try:
        custom = read_json(config_path)
    except FileError as e:
        logger.warning("Failed to load config, using defaults: %s", e)
        return policy
    if not isinstance(custom, dict):
        logger.warning("Policy %s is not a JSON object, using defaults", config_path)
        return policy

    for key in ("allowlist", "blocklist", "warnings", "exemptions"):
        if key in custom:
            setattr(policy, key, custom[key])
    return policy


def normalize_license(license_value: Any) -> str:
    """Flatten license-checker values into a single SPDX-like expression."""
    if not license_value or license_value == UNKNOWN:
        return UNKNOWN
    if isinstance(license_value, list):
        return " OR ".join(str(item) for item in license_value)
    if isinstance(license_value, dict):
        return str(license_value.get("type") or UNKNOWN)

    text = re.sub(r"[()]", "", str(license_value))
    text = re.sub(r"\s+AND\s+", " AND ", text, flags=re.IGNORECASE)
    text = re.sub(r"\s+OR\s+", " OR ", text, flags=re.IGNORECASE)
    return text.strip()


def matches_license(license_value: Any, license_list: list[str]) -> bool:
    """Check a license expression against a list of identifiers.

    ``A OR B`` matches when any alternative matches, ``A AND B`` only when
    all parts do. Matching is substring containment, so ``GPL-3.0`` also
    matches ``LGPL-3.0`` and ``GPL-3.0-only``.
    """
    normalized = normalize_license(license_value)

    if " OR " in normalized:
        parts = [p.strip() for p in normalized.split(" OR ")]
        return any(any(item in part for item in license_list) for part in parts)

    if " AND " in normalized:
        parts = [p.strip() for p in normalized.split(" AND ")]
        return all(any(item in part for item in license_list) for part in parts)

    return any(item in normalized for item in license_list)


def get_package_licenses(production: bool = True, cwd: str | Path | None = None) -> dict[str, Any]:
    """Installed packages keyed by ``name@version``.

    Raises:
        CommandError: If neither license-checker nor pnpm can list licenses
    """
    logger.info("Scanning package licenses...")
    args = ["license-checker", "--json"]
    if production:
        args.append("--production")

    result = run_command("npx", args, cwd=cwd, check=False)
    if result.ok:
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError:
            pass

    logger.info("Falling back to pnpm licenses...")
    fallback = run_command("pnpm", ["licenses", "list", "--json"], cwd=cwd, check=False)
    try:
        data = json.loads(fallback.stdout) if fallback.ok else None
    except json.JSONDecodeError:
        data = None
    if not isinstance(data, list):
        raise CommandError(
            f"Failed to get licenses: {result.stderr.strip() or result.stdout.strip()}",
            command="npx license-checker",
            stderr=result.stderr,
        )

    return {
        f"{pkg.get('name')}@{pkg.get('version')}": {
            "licenses": pkg.get("license"),
            "repository": pkg.get("repository"),
            "publisher": pkg.get("author"),
            "path": pkg.get("path"),
        }
        for pkg in data
    }


def validate_licenses(packages: dict[str, Any], policy: CompliancePolicy) -> ComplianceResults:
    """Classify each package against the policy.

    Order: exemption, blocklist, unknown license, review list (recorded
    as a warning, classification continues), allowlist.
    """
    logger.info("Validating licenses against policy...")
    results = ComplianceResults()

    for name, info in packages.items():
        results.total += 1
        license_id = normalize_license(info.get("licenses"))
        path = info.get("path")

        if name in policy.exemptions:
            logger.debug("%s: %s (EXEMPTED: %s)", name, license_id, policy.exemptions[name])
            results.compliant += 1
            continue

        if matches_license(license_id, policy.blocklist):
            results.violations.append(
                LicenseIssue(
                    name, license_id, "high", "Blocklisted license (copyleft/incompatible)", path
                )
            )
            continue

        if license_id == UNKNOWN:
            results.unknown.append(
                LicenseIssue(name, UNKNOWN, "medium", "License not specified", path)
            )
            continue

        if matches_license(license_id, policy.warnings):
            results.warnings.append(
                LicenseIssue(name, license_id, "low", "License requires review", path)
            )

        if matches_license(license_id, policy.allowlist):
            results.compliant += 1
        else:
            results.violations.append(
                LicenseIssue(name, license_id, "medium", "License not in allowlist", path)
            )

    return results


def export_results(output_path: str | Path, results: ComplianceResults, policy: CompliancePolicy) -> None:
    write_json(
        output_path,
        {
            "timestamp": datetime.now(UTC).isoformat(),
            "policy": policy.to_dict(),
            "results": results.to_dict(),
        },
    )
    logger.success(f"Results exported to {output_path}")


def check_license_compliance(
    production: bool = True,
    config_path: str | Path | None = None,
    output_path: str | Path | None = None,
    cwd: str | Path | None = None,
) -> ComplianceResults:
    """Scan installed dependencies and classify their licenses."""
    policy = load_compliance_policy(config_path)
    packages = get_package_licenses(production=production, cwd=cwd)
    results = validate_licenses(packages, policy)

    if output_path:
        export_results(output_path, results, policy)
    return results
