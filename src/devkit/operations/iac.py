"""Infrastructure-as-code validation.

Runs ``terraform validate``, ``terragrunt validate``, ``aws cloudformation
validate-template`` and conftest/OPA policy packs. Tools that are not
installed are retried through npx where a package exists.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devkit.utils.exec import CommandResult, run_command, run_with_npx_fallback
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

POLICY_ENGINES = {"conftest", "opa"}
MISSING_PATTERN = r"not recognized|command not found|ENOENT"
DEFAULT_OPA_QUERY = "data.main.deny == []"


@dataclass
class PolicyPack:
    """A set of Rego policies applied to one or more targets."""

    engine: str
    policies: list[str]
    targets: list[str]
    query: str | None = None
    args: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.engine not in POLICY_ENGINES:
            raise ValueError(f"Invalid policy engine: {self.engine}. Valid: {POLICY_ENGINES}")

    def command_args(self, target: str) -> list[str]:
        if self.engine == "conftest":
            args = ["test", target]
            for policy in self.policies:
                args.extend(["-p", policy])
        else:
            args = ["eval", "--fail-defined"]
            for policy in self.policies:
                args.extend(["--data", policy])
            args.extend(["--input", target, self.query or DEFAULT_OPA_QUERY])
        return [*args, *self.args]


@dataclass
class ToolResult:
    target: str
    tool: str
    ok: bool
    stdout: str = ""
    stderr: str = ""

    def to_dict(self) -> dict[str, Any]:
        return vars(self).copy()


@dataclass
class IaCValidationReport:
    terraform: list[ToolResult] = field(default_factory=list)
    terragrunt: list[ToolResult] = field(default_factory=list)
    cloudformation: list[ToolResult] = field(default_factory=list)
    policy_packs: list[ToolResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        results = self.terraform + self.terragrunt + self.cloudformation + self.policy_packs
        return all(result.ok for result in results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "terraform": [r.to_dict() for r in self.terraform],
            "terragrunt": [r.to_dict() for r in self.terragrunt],
            "cloudformation": [r.to_dict() for r in self.cloudformation],
            "policy_packs": [r.to_dict() for r in self.policy_packs],
        }


def _tool_result(target: str, tool: str, result: CommandResult, label: str) -> ToolResult:
    if result.ok:
        logger.success(f"{label} passed for {target}.")
    else:
        logger.error("%s failed for %s: %s", label, target, result.stderr or result.stdout)
    return ToolResult(target, tool, result.ok, result.stdout, result.stderr)


def validate_terraform(target: str | Path) -> ToolResult:
    """Initialise without a backend, then validate. A failed init only warns."""
    init = run_command(
        "terraform", ["init", "-input=false", "-backend=false", "-no-color"], cwd=target, check=False
    )
    if not init.ok:
        logger.warning("terraform init failed in %s: %s", target, init.stderr or init.stdout)
    result = run_command("terraform", ["validate", "-no-color"], cwd=target, check=False)
    return _tool_result(str(target), "terraform", result, "Terraform validation")


def validate_terragrunt(target: str | Path) -> ToolResult:
    result = run_command(
        "terragrunt", ["validate", "--terragrunt-non-interactive"], cwd=target, check=False
    )
    return _tool_result(str(target), "terragrunt", result, "Terragrunt validation")


def validate_cloudformation(template: str, cwd: str | Path | None = None) -> ToolResult:
    path = Path(template)
    if not path.is_absolute():
        path = Path(cwd or Path.cwd()) / path
    args = ["cloudformation", "validate-template", "--template-body", f"file://{path}"]
    result = run_with_npx_fallback("aws", args, "aws-cli", cwd=cwd, pattern=MISSING_PATTERN)
    return _tool_result(template, "cloudformation", result, "CloudFormation validation")


def validate_policy_pack(pack: PolicyPack, cwd: str | Path | None = None) -> list[ToolResult]:
    results = []
    for target in pack.targets:
        result = run_with_npx_fallback(
            pack.engine, pack.command_args(target), pack.engine, cwd=cwd, pattern=MISSING_PATTERN
        )
        results.append(_tool_result(target, pack.engine, result, f"{pack.engine} policy check"))
    return results


def validate_infrastructure(
    terraform_dirs: list[str] | None = None,
    terragrunt_dirs: list[str] | None = None,
    cloudformation_templates: list[str] | None = None,
    policy_packs: list[PolicyPack] | None = None,
    cwd: str | Path | None = None,
    fail_fast: bool = False,
) -> IaCValidationReport:
    """Validate every configured IaC target.

    With fail_fast, each category stops at its first failure; later
    categories still run.

    Args:
        terraform_dirs: Terraform module directories (relative to cwd)
        terragrunt_dirs: Terragrunt directories (relative to cwd)
        cloudformation_templates: Template files (relative to cwd)
        policy_packs: conftest/OPA policy packs
        cwd: Base directory
        fail_fast: Stop a category at its first failure
    """
    report = IaCValidationReport()

    def work_dir(directory: str) -> Path:
        return Path(cwd) / directory if cwd else Path(directory)

    for directory in terraform_dirs or []:
        report.terraform.append(validate_terraform(work_dir(directory)))
        if fail_fast and not report.terraform[-1].ok:
            break

    for directory in terragrunt_dirs or []:
        report.terragrunt.append(validate_terragrunt(work_dir(directory)))
        if fail_fast and not report.terragrunt[-1].ok:
            break

    for template in cloudformation_templates or []:
        report.cloudformation.append(validate_cloudformation(template, cwd))
        if fail_fast and not report.cloudformation[-1].ok:
            break

    for pack in policy_packs or []:
        results = validate_policy_pack(pack, cwd)
        report.policy_packs.extend(results)
        if fail_fast and not all(r.ok for r in results):
            break

    return report
