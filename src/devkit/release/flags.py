"""Feature flag configuration lint for LaunchDarkly and ConfigCat exports.

Both inputs are the JSON documents the providers export, so their keys
keep the providers' camelCase spelling.
"""

from dataclasses import dataclass, field
from typing import Any

from devkit.errors import ValidationError
from devkit.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class FlagLintResult:
    valid: bool
    issues: list[str] = field(default_factory=list)
    dead_flags: list[str] = field(default_factory=list)
    total_flags: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "issues": self.issues,
            "dead_flags": self.dead_flags,
            "total_flags": self.total_flags,
        }


def _common_issues(
    key: str,
    flag: dict[str, Any],
    required_tags: list[str] | None,
    require_descriptions: bool,
) -> list[str]:
    issues = []
    if require_descriptions and not flag.get("description"):
        issues.append(f"Flag {key} is missing a description")
    if required_tags:
        tags = flag.get("tags") or []
        missing = [tag for tag in required_tags if tag not in tags]
        if missing:
            issues.append(f"Flag {key} is missing required tags: {', '.join(missing)}")
    return issues


def _lint_launch_darkly(
    config: dict[str, Any],
    referenced_flags: list[str] | None,
    required_tags: list[str] | None,
    require_descriptions: bool,
    issues: list[str],
    dead: set[str],
) -> None:
    for flag in config.get("flags", []):
        key = flag.get("key")
        if not key:
            issues.append("LaunchDarkly flag missing key")
            continue

        issues.extend(_common_issues(key, flag, required_tags, require_descriptions))

        if len(flag.get("variations") or []) < 2:
            issues.append(f"Flag {key} should define at least two variations")

        flag_fallthrough = (flag.get("fallthrough") or {}).get("variation")
        environments = list((flag.get("environments") or {}).items())
        for env_name, env in environments:
            if not env.get("on"):
                continue
            if not env.get("rules") and not env.get("targets"):
                issues.append(
                    f"Flag {key} environment {env_name} is permanently on without targeting rules"
                )
            env_fallthrough = (env.get("fallthrough") or {}).get("variation")
            if env_fallthrough is None and flag_fallthrough is None:
                issues.append(
                    f"Flag {key} environment {env_name} is missing a fallthrough variation"
                )

        inactive_everywhere = bool(environments) and all(not env.get("on") for _, env in environments)
        unreferenced = referenced_flags is not None and key not in referenced_flags
        if flag.get("archived") is True or inactive_everywhere or unreferenced:
            dead.add(key)


def _lint_config_cat(
    config: dict[str, Any],
    referenced_flags: list[str] | None,
    required_tags: list[str] | None,
    require_descriptions: bool,
    issues: list[str],
    dead: set[str],
) -> None:
    for record_key, flag in (config.get("flags") or {}).items():
        key = flag.get("key") or record_key
        if not key:
            issues.append("ConfigCat flag missing key")
            continue

        issues.extend(_common_issues(key, flag, required_tags, require_descriptions))

        if "defaultValue" not in flag:
            issues.append(f"Flag {key} must define a defaultValue")
        if not flag.get("targetingRules") and not flag.get("percentageRules"):
            issues.append(f"Flag {key} has no targeting or percentage rules defined")

        archived = flag.get("archived") is True or flag.get("isArchived") is True
        unreferenced = referenced_flags is not None and key not in referenced_flags
        if archived or unreferenced:
            dead.add(key)


def lint_flags(
    launch_darkly: dict[str, Any] | None = None,
    config_cat: dict[str, Any] | None = None,
    referenced_flags: list[str] | None = None,
    required_tags: list[str] | None = None,
    require_descriptions: bool = True,
) -> FlagLintResult:
    """Lint feature flag definitions and find dead flags.

    A flag is dead when it is archived, switched off in every environment
    (LaunchDarkly), or absent from referenced_flags when that list is
    given.

    Raises:
        ValidationError: If neither configuration is given
    """
    if launch_darkly is None and config_cat is None:
        raise ValidationError("Provide either launchDarkly or configCat configuration")

    issues: list[str] = []
    dead: set[str] = set()
    total = 0

    if launch_darkly is not None:
        _lint_launch_darkly(
            launch_darkly, referenced_flags, required_tags, require_descriptions, issues, dead
        )
        total += len(launch_darkly.get("flags", []))

    if config_cat is not None:
        _lint_config_cat(
            config_cat, referenced_flags, required_tags, require_descriptions, issues, dead
        )
        total += len(config_cat.get("flags") or {})

    result = FlagLintResult(
        valid=not issues, issues=issues, dead_flags=sorted(dead), total_flags=total
    )

    if not result.valid:
        logger.warning("Flag linting found %d issue(s)", len(issues))
    if result.dead_flags:
        logger.warning("Detected %d potential dead flag(s)", len(result.dead_flags))
    if result.valid and not result.dead_flags:
        logger.success("Feature flag configuration looks healthy")
    return result
