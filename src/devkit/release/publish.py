"""Pre-publish verification and version/tag consistency."""

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devkit.utils.exec import run_command
from devkit.utils.files import read_json
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_COMMANDS = ["pnpm lint", "pnpm test", "pnpm build"]


@dataclass
class PublishVerificationResult:
    passed: bool
    failures: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"passed": self.passed, "failures": self.failures}


@dataclass
class VersionSyncResult:
    package_version: str
    npm_version: str | None
    git_tag_exists: bool
    in_sync: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "package_version": self.package_version,
            "npm_version": self.npm_version,
            "git_tag_exists": self.git_tag_exists,
            "in_sync": self.in_sync,
        }


def verify_publish_state(
    commands: list[str] | None = None,
    cwd: str | Path | None = None,
    bail_on_failure: bool = True,
) -> PublishVerificationResult:
    """Run the pre-publish commands in order.

    Each failure is recorded as ``"<command> (exit N)"``. With
    bail_on_failure the remaining commands are skipped after the first
    failure.
    """
    failures: list[str] = []
    for command in commands or DEFAULT_COMMANDS:
        executable, *args = shlex.split(command)
        result = run_command(executable, args, cwd=cwd, check=False)
        if result.ok:
            logger.success(f"Pre-publish check passed: {command}")
            continue

        failures.append(f"{command} (exit {result.code})")
        logger.error("Pre-publish check failed: %s", command)
        if bail_on_failure:
            break

    return PublishVerificationResult(passed=not failures, failures=failures)


def sync_version_tags(
    package_path: str | Path | None = None,
    tag_prefix: str = "",
    registry: str | None = None,
) -> VersionSyncResult:
    """Compare package.json's version with its git tag and npm release.

    In sync means the tag ``<prefix><version>`` exists and npm's latest
    published version equals the package.json version.
    """
    package_json = Path(package_path or Path.cwd() / "package.json")
    package = read_json(package_json)
    name, version = package.get("name"), package.get("version", "")
    tag_name = f"{tag_prefix}{version}"

    git_result = run_command("git", ["tag", "--list", tag_name], cwd=package_json.parent, check=False)
    git_tag_exists = tag_name in git_result.stdout

    npm_version = None
    if name:
        args = ["view", name, "version"]
        if registry:
            args.extend(["--registry", registry])
        npm_result = run_command("npm", args, check=False)
        if npm_result.ok:
            npm_version = npm_result.stdout.strip()

    in_sync = git_tag_exists and npm_version == version
    if in_sync:
        logger.success(f"{name} version {version} is synced between git and npm.")
    else:
        logger.warning(
            "Version sync mismatch: git tag (%s), npm version (%s), package.json (%s).",
            "present" if git_tag_exists else "missing",
            npm_version or "unknown",
            version,
        )
    return VersionSyncResult(version, npm_version, git_tag_exists, in_sync)
