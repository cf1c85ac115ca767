"""Configuration conventions across a monorepo's packages/ and tooling/ trees.

Errors mark configurations that must change (legacy ESLint files, imports
from moved presets). Warnings mark drift from the shared presets.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devkit.config import SharedConfigNames
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

PACKAGE_ROOTS = ("packages", "tooling")
LEGACY_ESLINT_FILES = (
    ".eslintrc",
    ".eslintrc.json",
    ".eslintrc.js",
    ".eslintrc.cjs",
    ".eslintrc.yaml",
    ".eslintrc.yml",
)
PRETTIER_FILES = (
    ".prettierrc",
    ".prettierrc.json",
    ".prettierrc.js",
    ".prettierrc.cjs",
    "prettier.config.js",
)
REDUNDANT_LINT_DEPS = ("@eslint/js", "eslint-config-prettier", "eslint-plugin-prettier")


@dataclass
class PackageValidation:
    package_path: str
    package_name: str
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return vars(self).copy()


@dataclass
class MonorepoValidationSummary:
    total_packages: int = 0
    packages_with_errors: int = 0
    packages_with_warnings: int = 0
    results: list[PackageValidation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_packages": self.total_packages,
            "packages_with_errors": self.packages_with_errors,
            "packages_with_warnings": self.packages_with_warnings,
            "results": [r.to_dict() for r in self.results],
        }


def find_packages(root: Path) -> list[Path]:
    """Package directories under packages/ and tooling/.

    A directory with a package.json is a package and is not descended
    into; other directories (npm scopes) are searched recursively.
    """
    found: list[Path] = []

    def scan(directory: Path) -> None:
        if not directory.is_dir():
            return
        for entry in sorted(directory.iterdir()):
            if not entry.is_dir():
                continue
            if (entry / "package.json").exists():
                found.append(entry)
            else:
                scan(entry)

    for name in PACKAGE_ROOTS:
        scan(root / name)
    return found


class PackageConfigValidator:
    """Runs the per-package checks."""

    def __init__(self, names: SharedConfigNames, eslint_exempt: set[str]) -> None:
        self.names = names
        self.eslint_exempt = eslint_exempt

    def validate(self, package_dir: Path, root: Path) -> PackageValidation:
        package = json.loads((package_dir / "package.json").read_text(encoding="utf-8"))
        relative = os.path.relpath(package_dir, root)
        result = PackageValidation(relative, package.get("name") or relative)

        self._check_legacy_eslint(package_dir, result)
        self._check_tsconfig(package_dir, result)
        self._check_eslint_config(package_dir, result)
        self._check_prettier(package_dir, result)
        self._check_lint_staged(package_dir, result)
        self._check_dependencies(package_dir, package, result)
        return result

    def _check_legacy_eslint(self, package_dir: Path, result: PackageValidation) -> None:
        for name in LEGACY_ESLINT_FILES:
            if (package_dir / name).exists():
                result.errors.append(
                    f"Found legacy {name} - should use eslint.config.js with {self.names.lint_package}"
                )

    def _check_tsconfig(self, package_dir: Path, result: PackageValidation) -> None:
        path = package_dir / "tsconfig.json"
        if not path.exists():
            return
        base = f"{self.names.config_package}/tsconfig.base.json"
        try:
            extends = json.loads(path.read_text(encoding="utf-8")).get("extends")
        except json.JSONDecodeError:
            result.warnings.append("tsconfig.json could not be parsed")
            return
        if not extends:
            result.warnings.append(
                f"tsconfig.json does not extend any base config - should extend {base}"
            )
        elif self.names.config_package not in extends:
            result.warnings.append(f'tsconfig.json extends "{extends}" - should extend {base}')

    def _check_eslint_config(self, package_dir: Path, result: PackageValidation) -> None:
        path = package_dir / "eslint.config.js"
        lint = self.names.lint_package
        if not path.exists():
            if result.package_name not in self.eslint_exempt:
                result.warnings.append("Missing eslint.config.js - should have ESLint configuration")
            return

        content = path.read_text(encoding="utf-8")
        if lint not in content:
            result.warnings.append(
                f"eslint.config.js does not import from {lint} - should use centralized configs"
            )
        moved = f"{self.names.config_package}/eslint"
        if moved in content:
            result.errors.append(
                f"eslint.config.js imports from {moved} - should import from {lint}/eslint"
            )

    def _check_prettier(self, package_dir: Path, result: PackageValidation) -> None:
        lint = self.names.lint_package
        for name in PRETTIER_FILES:
            path = package_dir / name
            if path.exists() and lint not in path.read_text(encoding="utf-8"):
                result.warnings.append(
                    f"{name} does not use {lint} - should import prettierConfig from {lint}"
                )

    def _check_lint_staged(self, package_dir: Path, result: PackageValidation) -> None:
        path = package_dir / "lint-staged.config.cjs"
        moved = f"{self.names.config_package}/lint-staged"
        if path.exists() and moved in path.read_text(encoding="utf-8"):
            result.errors.append(
                f"lint-staged.config.cjs imports from {moved}.config.cjs - "
                f"should use {self.names.lint_package}/configs/lint-staged"
            )

    def _check_dependencies(
        self, package_dir: Path, package: dict[str, Any], result: PackageValidation
    ) -> None:
        lint = self.names.lint_package
        dev_deps = package.get("devDependencies") or {}
        if (
            (package_dir / "eslint.config.js").exists()
            and lint not in dev_deps
            and lint not in result.package_name
        ):
            result.warnings.append(
                f"Package uses ESLint but does not have {lint} in devDependencies"
            )
        for dep in REDUNDANT_LINT_DEPS:
            if dep in dev_deps and lint in dev_deps:
                result.warnings.append(
                    f"Package has both {lint} and {dep} - {dep} is provided by {lint} "
                    "and can be removed"
                )


def validate_monorepo_configs(
    root: str | Path | None = None,
    names: SharedConfigNames | None = None,
    eslint_exempt: list[str] | None = None,
) -> MonorepoValidationSummary:
    """Validate every package's lint, format and TypeScript configuration.

    Args:
        root: Monorepo root (default: current directory)
        names: Shared package names
        eslint_exempt: Package names that need no eslint.config.js
            (default: the shared config package)
    """
    root_dir = Path(root or Path.cwd()).resolve()
    names = names or SharedConfigNames()
    validator = PackageConfigValidator(names, set(eslint_exempt or [names.config_package]))

    summary = MonorepoValidationSummary()
    for package_dir in find_packages(root_dir):
        result = validator.validate(package_dir, root_dir)
        summary.results.append(result)
        if result.errors:
            summary.packages_with_errors += 1
        if result.warnings:
            summary.packages_with_warnings += 1
    summary.total_packages = len(summary.results)

    if summary.packages_with_errors:
        logger.error("%d package(s) have configuration errors", summary.packages_with_errors)
    elif summary.packages_with_warnings:
        logger.warning("No errors found, but there are warnings to address.")
    else:
        logger.success("All packages are using correct configurations!")
    return summary
