"""License policy enforcement for workspace packages.

Checks the ``license`` field of every package.json below a root. Policy
values come from, in increasing priority: built-in defaults, a JSON
policy file, explicit arguments.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devkit.errors import FileError, ValidationError
from devkit.utils.files import find_files, read_json
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_ALLOWED = ["MIT", "Apache-2.0", "BSD-2-Clause", "BSD-3-Clause", "ISC"]
DEFAULT_BLOCKED = ["GPL-3.0", "AGPL-3.0"]


@dataclass
class WorkspaceLicense:
    name: str
    license: str | None
    path: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "license": self.license, "path": self.path}


@dataclass
class LicensePolicy:
    allowed_licenses: list[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED))
    blocked_licenses: list[str] = field(default_factory=lambda: list(DEFAULT_BLOCKED))
    ignore_packages: list[str] = field(default_factory=list)


@dataclass
class LicenseCheckResult:
    passed: bool
    violations: list[str] = field(default_factory=list)
    packages: list[WorkspaceLicense] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "violations": self.violations,
            "packages": [p.to_dict() for p in self.packages],
        }


def load_license_policy(
    policy_file: str | Path | None = None,
    allowed: list[str] | None = None,
    blocked: list[str] | None = None,
    ignore_packages: list[str] | None = None,
) -> LicensePolicy:
    policy = LicensePolicy()

    if policy_file and Path(policy_file).exists():
        document = read_json(policy_file)
        if not isinstance(document, dict):
            raise ValidationError(
                f"Policy file {policy_file} must contain a JSON object", field="policy"
            )
        policy.allowed_licenses = document.get("allowedLicenses", policy.allowed_licenses)
        policy.blocked_licenses = document.get("blockedLicenses", policy.blocked_licenses)
        policy.ignore_packages = document.get("ignorePackages", policy.ignore_packages)

    if allowed is not None:
        policy.allowed_licenses = allowed
    if blocked is not None:
        policy.blocked_licenses = blocked
    if ignore_packages is not None:
        policy.ignore_packages = ignore_packages
    return policy


def collect_workspace_licenses(root: str | Path | None = None) -> list[WorkspaceLicense]:
    """Name and declared license of every named package below root."""
    packages = []
    for package_file in find_files(root or Path.cwd(), r"package\.json$"):
        try:
            package = read_json(package_file)
        except FileError:
            continue
        if isinstance(package, dict) and package.get("name"):
            packages.append(
                WorkspaceLicense(
                    name=package["name"], license=package.get("license"), path=str(package_file)
                )
            )
    return packages


def enforce_license_policy(
    root: str | Path | None = None,
    policy_file: str | Path | None = None,
    allowed: list[str] | None = None,
    blocked: list[str] | None = None,
    ignore_packages: list[str] | None = None,
) -> LicenseCheckResult:
    """Check workspace package licenses against the policy.

    Each package yields at most one violation: a missing license, then a
    blocked license, then a license outside the allowlist. Ignored
    package names are compared case-insensitively.
    """
    policy = load_license_policy(policy_file, allowed, blocked, ignore_packages)
    packages = collect_workspace_licenses(root)
    ignored = {name.lower() for name in policy.ignore_packages}

    violations: list[str] = []
    for package in packages:
        if package.name.lower() in ignored:
            continue
        if not package.license:
            violations.append(
                f"Package {package.name} is missing a license declaration ({package.path})."
            )
        elif package.license in policy.blocked_licenses:
            violations.append(f"Package {package.name} uses blocked license {package.license}.")
        elif package.license not in policy.allowed_licenses:
            violations.append(
                f"Package {package.name} uses license {package.license} which is not allowed."
            )

    passed = not violations
    if passed:
        logger.success("License policy check passed for all workspaces.")
    else:
        logger.error("License policy violations detected:\n- %s", "\n- ".join(violations))
    return LicenseCheckResult(passed=passed, violations=violations, packages=packages)
