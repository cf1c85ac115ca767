"""Deprecated dependency checker and fixer.

Deprecated packages are found two ways: the ``deprecated`` field of the
package manager's audit report, and a lookup of each package listed in
DEPRECATED_FIXES in the installed dependency tree. Known packages can be
fixed automatically through package.json overrides.
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devkit.errors import FileError, ValidationError
from devkit.npm import find_package_json, get_package_manager
from devkit.utils.exec import run_command
from devkit.utils.files import read_json, write_json
from devkit.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DeprecatedFix:
    """How a known deprecated package is fixed.

    Attributes:
        reason: Why the package is deprecated
        fix: "override" (pin a replacement) or "update-parent" (advice only)
        override: Replacement package for overrides (default: same package)
        version: Version range the override pins
        alternative: Human-readable remedy
        parent: Package that pulls the deprecated one in
        note: Extra remarks
    """

    reason: str
    fix: str
    override: str | None = None
    version: str | None = None
    alternative: str | None = None
    parent: str | None = None
    note: str | None = None

    def __post_init__(self) -> None:
        """Validate fix kind."""
        if self.fix not in {"override", "update-parent"}:
            raise ValueError(f"Invalid fix kind: {self.fix}. Valid: {{'override', 'update-parent'}}")


@dataclass
class DeprecatedPackage:
    """A deprecated package found in the dependency tree."""

    name: str
    version: str
    reason: str | None = None
    via: list[Any] = field(default_factory=list)
    fix_info: DeprecatedFix | None = None


DEPRECATED_FIXES: dict[str, DeprecatedFix] = {
    "lodash.get": DeprecatedFix(
        reason=(
            "lodash.get is deprecated. Use native optional chaining or lodash.get "
            "from lodash directly."
        ),
        fix="override",
        override="lodash",
        version="^4.17.21",
        alternative="Use optional chaining (?.) or lodash.get from main lodash package",
    ),
    "subscriptions-transport-ws": DeprecatedFix(
        reason=(
            "subscriptions-transport-ws is deprecated. This is likely from "
            "eslint-plugin-graphql."
        ),
        fix="update-parent",
        parent="eslint-plugin-graphql",
        alternative=(
            "Update eslint-plugin-graphql to latest version or consider removing if not needed"
        ),
        note=(
            "Cannot directly replace with graphql-ws as APIs differ. "
            "Update parent package instead."
        ),
    ),
}


# =============================================================================
# Detection
# =============================================================================


def _audit_deprecations(manager: str, package_dir: Path) -> list[DeprecatedPackage]:
    tool = "pnpm" if manager == "pnpm" else "npm"
    result = run_command(tool, ["audit", "--json"], cwd=package_dir, check=False)
    try:
        audit = json.loads(result.stdout)
    except json.JSONDecodeError:
        logger.warning("Could not run audit, trying alternative method...")
        return []
    if not isinstance(audit, dict):
        logger.warning("Unexpected audit output, trying alternative method...")
        return []

    found: list[DeprecatedPackage] = []
    for name, vuln in (audit.get("vulnerabilities") or {}).items():
        if isinstance(vuln, dict) and vuln.get("deprecated"):
            found.append(
                DeprecatedPackage(
                    name=name,
                    version=vuln.get("range") or "unknown",
                    reason=vuln["deprecated"],
                    via=vuln.get("via") or [],
                )
            )
    return found


def _known_deprecations(manager: str, package_dir: Path) -> list[DeprecatedPackage]:
    found: list[DeprecatedPackage] = []
    for dep_name, fix_info in DEPRECATED_FIXES.items():
        tool = "pnpm" if manager == "pnpm" else "npm"
        args = ["list" if tool == "pnpm" else "ls", dep_name, "--depth=10"]
        result = run_command(tool, args, cwd=package_dir, check=False)

        if not result.ok or dep_name not in result.stdout:
            continue

        match = re.search(rf"{re.escape(dep_name)}@(\S+)", result.stdout)
        found.append(
            DeprecatedPackage(
                name=dep_name,
                version=match.group(1) if match else "unknown",
                reason=fix_info.reason,
                fix_info=fix_info,
            )
        )
    return found


def check_deprecated_deps(package_json: str | Path) -> list[DeprecatedPackage]:
    """Find deprecated packages installed for a package.json."""
    package_json = Path(package_json)
    manager = get_package_manager(package_json)
    logger.info("Checking for deprecated dependencies using %s...", manager)

    package_dir = package_json.parent
    return _audit_deprecations(manager, package_dir) + _known_deprecations(manager, package_dir)


def find_dependents(package_json: str | Path, dep_name: str) -> list[str]:
    """Packages that depend on dep_name, according to ``why``."""
    package_json = Path(package_json)
    tool = "pnpm" if get_package_manager(package_json) == "pnpm" else "npm"
    result = run_command(tool, ["why", dep_name], cwd=package_json.parent, check=False)
    if not result.ok:
        logger.warning("Could not find dependents for %s: %s", dep_name, result.stderr.strip())
        return []

    dependents: list[str] = []
    for line in result.stdout.split("\n"):
        match = re.search(r"([^@\s]+@[^@\s]+)", line)
        if match and dep_name not in match.group(1):
            package = match.group(1).split("@")[0]
            if package and package not in dependents:
                dependents.append(package)
    return dependents


# =============================================================================
# Fixing
# =============================================================================


def _apply_override(package: dict[str, Any], dep: DeprecatedPackage, manager: str) -> bool:
    fix_info = dep.fix_info
    if fix_info is None:
        return False
    override_key = fix_info.override or dep.name
    override_version = fix_info.version

    if not override_version:
        logger.warning("No version specified for override of %s", dep.name)
        return False

    if manager == "pnpm":
        overrides = package.setdefault("pnpm", {}).setdefault("overrides", {})
        if overrides.get(override_key) == override_version:
            return False
        if fix_info.override and fix_info.override != dep.name:
            overrides[dep.name] = f"npm:{override_key}@{override_version}"
        else:
            overrides[override_key] = override_version
        logger.success(f"Added pnpm override: {dep.name} -> {override_key}@{override_version}")
        return True

    overrides = package.setdefault("overrides", {})
    if overrides.get(override_key) == override_version:
        return False
    overrides[override_key] = override_version
    logger.success(f"Added npm override: {override_key}@{override_version}")
    return True


def apply_fixes(package_json: str | Path, deprecated: list[DeprecatedPackage]) -> bool:
    """Write overrides for fixable packages and reinstall.

    Returns:
        True if package.json was changed

    Raises:
        ValidationError: If package.json does not hold a JSON object
    """
    package_json = Path(package_json)
    package = read_json(package_json)
    if not isinstance(package, dict):
        raise ValidationError(f"{package_json} must contain a JSON object", field="package.json")
    manager = get_package_manager(package_json)

    changed = False
    for dep in deprecated:
        if dep.fix_info is None:
            logger.warning("No fix info for %s, skipping...", dep.name)
            continue

        if dep.fix_info.fix == "override":
            changed = _apply_override(package, dep, manager) or changed
        elif dep.fix_info.parent:
            logger.info(
                "For %s, consider updating parent package: %s", dep.name, dep.fix_info.parent
            )
            logger.info("  %s", dep.fix_info.alternative or "Update to latest version")
            if dep.fix_info.note:
                logger.info("  Note: %s", dep.fix_info.note)

    if changed:
        write_json(package_json, package)
        logger.success("Updated package.json with fixes")

        logger.info("Installing updated dependencies...")
        tool = "pnpm" if manager == "pnpm" else "npm"
        result = run_command(tool, ["install"], cwd=package_json.parent, check=False)
        if result.ok:
            logger.success("Dependencies installed successfully")
        else:
            logger.error("Error installing dependencies: %s", result.stderr.strip())

    return changed


def fix_deprecated_deps(
    package_path: str | Path | None = None, auto_fix: bool = False
) -> list[DeprecatedPackage]:
    """Report deprecated dependencies and optionally fix them.

    Args:
        package_path: Directory to start the package.json search from
        auto_fix: Apply overrides and reinstall

    Returns:
        Deprecated packages found

    Raises:
        FileError: If no package.json is found
    """
    start = Path(package_path or Path.cwd())
    package_json = find_package_json(start)
    if package_json is None:
        raise FileError("Could not find package.json", str(start), "access")

    logger.info("Checking package: %s", package_json)
    deprecated = check_deprecated_deps(package_json)

    if not deprecated:
        logger.success("No deprecated dependencies found!")
        return deprecated

    logger.warning("Found %d deprecated dependency/dependencies:", len(deprecated))
    for dep in deprecated:
        logger.warning("  • %s@%s", dep.name, dep.version)
        logger.info("    Reason: %s", dep.reason or "Deprecated")
        if dep.fix_info:
            logger.info("    Fix: %s", dep.fix_info.alternative or dep.fix_info.fix)
        dependents = find_dependents(package_json, dep.name)
        if dependents:
            logger.info("    Used by: %s", ", ".join(dependents))

    if auto_fix:
        logger.info("Applying fixes...")
        apply_fixes(package_json, deprecated)
    else:
        logger.info("Run with --fix to automatically apply fixes")

    return deprecated
