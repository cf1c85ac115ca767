"""Environment variable coverage checks."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from devkit.errors import ValidationError
from devkit.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class EnvCoverageResult:
    required: list[str] = field(default_factory=list)
    provided: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    extraneous: list[str] = field(default_factory=list)
    empty: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "required": self.required,
            "provided": self.provided,
            "missing": self.missing,
            "extraneous": self.extraneous,
            "empty": self.empty,
        }


def diff_env_coverage(
    required_env: list[str],
    env: Mapping[str, str] | None = None,
    allow_empty: bool = False,
    verbose: bool = True,
) -> EnvCoverageResult:
    """Compare required variable names with an environment.

    Args:
        required_env: Variable names that must be present
        env: Environment to inspect (default: os.environ)
        allow_empty: Treat empty values as present
        verbose: Log a summary
    """
    env = os.environ if env is None else env
    provided = list(env.keys())
    result = EnvCoverageResult(
        required=list(required_env),
        provided=provided,
        missing=[key for key in required_env if key not in env],
        extraneous=[key for key in provided if key not in required_env],
        empty=[] if allow_empty else [key for key in required_env if key in env and env[key] == ""],
    )

    if verbose:
        logger.info("Required env: %d", len(required_env))
        logger.info("Present env: %d", len(provided))
        if result.missing:
            logger.warning("Missing env vars: %s", ", ".join(result.missing))
        if result.empty:
            logger.warning("Empty env vars: %s", ", ".join(result.empty))
        if result.extraneous:
            logger.info("Extraneous env vars detected: %d", len(result.extraneous))

    return result


def ensure_env_coverage(
    required_env: list[str],
    env: Mapping[str, str] | None = None,
    allow_empty: bool = False,
    verbose: bool = True,
) -> EnvCoverageResult:
    """Like diff_env_coverage, but raise when anything is missing or empty.

    Raises:
        ValidationError: If required variables are missing or empty
    """
    result = diff_env_coverage(required_env, env, allow_empty, verbose)
    if result.missing or result.empty:
        parts = []
        if result.missing:
            parts.append(f"Missing: {', '.join(result.missing)}")
        if result.empty:
            parts.append(f"Empty: {', '.join(result.empty)}")
        raise ValidationError(
            f"Environment validation failed. {' | '.join(parts)}",
            field="env",
            value=result.missing + result.empty,
        )
    return result
