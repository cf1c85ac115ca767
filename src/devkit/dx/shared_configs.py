"""Check that workspace packages consume the shared tsconfig/ESLint presets."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devkit.config import SharedConfigNames
from devkit.errors import FileError
from devkit.utils.files import find_files, read_json
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

ESLINT_FLAT_CONFIGS = ("eslint.config.js", "eslint.config.cjs", "eslint.config.mjs")


@dataclass
class SharedConfigResult:
    package_dir: str
    issues: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"package_dir": self.package_dir, "issues": self.issues}


def _tsconfig_issues(package_dir: Path, names: SharedConfigNames) -> list[str]:
    base = f"{names.config_package}/tsconfig.base.json"
    path = package_dir / "tsconfig.json"
    if not path.exists():
        return ["tsconfig.json not found."]
    try:
        tsconfig = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return ["tsconfig.json could not be parsed."]
    extends = tsconfig.get("extends") if isinstance(tsconfig, dict) else None
    if not isinstance(extends, str) or base not in extends:
        return [f"tsconfig.json does not extend {base}."]
    return []


def _eslint_issues(package_dir: Path, names: SharedConfigNames) -> list[str]:
    config = next(
        (package_dir / name for name in ESLINT_FLAT_CONFIGS if (package_dir / name).exists()),
        None,
    )
    if config is None:
        return ["ESLint flat config not found."]
    if names.config_package not in config.read_text(encoding="utf-8"):
        return [f"ESLint config does not reference {names.config_package}."]
    return []


def ensure_shared_configs(
    root: str | Path | None = None,
    require_tsconfig: bool = True,
    require_eslint: bool = True,
    names: SharedConfigNames | None = None,
) -> list[SharedConfigResult]:
    """Report packages that do not use the shared config presets.

    Packages without a name, the scripts package itself and unreadable
    package.json files are skipped.

    Returns:
        One result per package with at least one issue
    """
    names = names or SharedConfigNames()
    results: list[SharedConfigResult] = []

    for package_file in find_files(root or Path.cwd(), r"(^|/)package\.json$"):
        try:
            package = read_json(package_file)
        except FileError:
            continue
        name = package.get("name") if isinstance(package, dict) else None
        if not name or name.startswith(names.scripts_package):
            continue

        package_dir = package_file.parent
        deps = {**package.get("dependencies", {}), **package.get("devDependencies", {})}
        issues = []
        if names.config_package not in deps:
            issues.append(f"Missing devDependency on {names.config_package}.")
        if require_tsconfig:
            issues.extend(_tsconfig_issues(package_dir, names))
        if require_eslint:
            issues.extend(_eslint_issues(package_dir, names))
        if issues:
            results.append(SharedConfigResult(str(package_dir), issues))

    if results:
        logger.warning("Found %d package(s) missing shared config requirements.", len(results))
    else:
        logger.success("All packages appear to consume the shared config presets.")
    return results
