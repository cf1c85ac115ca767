"""Local environment checks: env vars and tool versions."""

import os
import re
from dataclasses import dataclass, field
from typing import Any

from devkit.utils.exec import run_command
from devkit.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CommandRequirement:
    """A tool that must be installed, optionally at a minimum version."""

    cmd: str
    args: list[str] = field(default_factory=lambda: ["--version"])
    min_version: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CommandRequirement":
        return cls(
            cmd=data["cmd"],
            args=data.get("args") or ["--version"],
            min_version=data.get("min_version", data.get("minVersion")),
        )


@dataclass
class EnvValidationResult:
    missing_env: list[str] = field(default_factory=list)
    failed_commands: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing_env and not self.failed_commands

    def to_dict(self) -> dict[str, Any]:
        return {"missing_env": self.missing_env, "failed_commands": self.failed_commands}


def _version_parts(version: str) -> list[int]:
    parts = re.sub(r"[^\d.]", "", version).split(".")
    numbers = [int(part) if part else 0 for part in parts[:3]]
    return numbers + [0] * (3 - len(numbers))


def compare_semver(a: str, b: str) -> int:
    """Compare major.minor.patch, ignoring anything that is not a digit or dot.

    ``v18.2.0`` and ``18.2`` compare equal to ``18.2.0``.

    Returns:
        Negative if a < b, zero if equal, positive if a > b
    """
    for left, right in zip(_version_parts(a), _version_parts(b), strict=True):
        if left != right:
            return left - right
    return 0


def validate_env(
    required_env: list[str] | None = None,
    required_commands: list[CommandRequirement] | None = None,
) -> EnvValidationResult:
    """Check required environment variables and tools.

    A variable counts as missing when unset or empty. A tool fails when
    its version command exits non-zero or reports a version below
    min_version.
    """
    result = EnvValidationResult()
    result.missing_env = [name for name in required_env or [] if not os.environ.get(name)]

    for requirement in required_commands or []:
        output = run_command(requirement.cmd, requirement.args, check=False)
        if not output.ok:
            result.failed_commands.append(f"{requirement.cmd} (not available)")
            continue
        actual = output.stdout.strip()
        if requirement.min_version and compare_semver(actual, requirement.min_version) < 0:
            result.failed_commands.append(
                f"{requirement.cmd} version {actual} < required {requirement.min_version}"
            )

    if result.ok:
        logger.success("Environment validation passed.")
    if result.missing_env:
        logger.error("Missing env vars: %s", ", ".join(result.missing_env))
    if result.failed_commands:
        logger.error("Command validation failed:\n- %s", "\n- ".join(result.failed_commands))
    return result
