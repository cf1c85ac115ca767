"""Operations subcommands: health, rollout gating, env scaffolding and IaC."""

from pathlib import Path
from typing import Annotated

import typer

from devkit.commands import echo_json, handle_errors, print_lines, read_json_file, split_csv

app = typer.Typer(help="Deployment and infrastructure operations", no_args_is_help=True)


@app.command()
def smoke(
    targets_file: Annotated[
        Path,
        typer.Option(
            "--targets", help="JSON list of {name, url, ...}", exists=True, dir_okay=False
        ),
    ],
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Smoke-test HTTP endpoints; exit 1 if any fails."""
    from devkit.operations import SmokeTarget, smoke_services

    data = read_json_file(targets_file)
    if not isinstance(data, list):
        raise typer.BadParameter("Expected a JSON list of targets", param_hint="--targets")
    try:
        targets = [SmokeTarget.from_dict(item) for item in data]
    except (KeyError, TypeError) as e:
        raise typer.BadParameter(f"Invalid target entry: {e}", param_hint="--targets") from e

    results = smoke_services(targets)
    if json_output:
        echo_json([r.to_dict() for r in results])
    raise typer.Exit(0 if all(r.ok for r in results) else 1)


@app.command()
def health(
    endpoint: Annotated[str, typer.Argument(help="URL to probe")],
    timeout_ms: Annotated[int, typer.Option("--timeout-ms", help="Per-request timeout")] = 5000,
    expected_status: Annotated[int, typer.Option("--status", help="Expected status")] = 200,
    retries: Annotated[int, typer.Option("--retries", help="Attempts before giving up")] = 3,
) -> None:
    """Probe a health endpoint with retries."""
    from devkit.operations import perform_health_check

    healthy = perform_health_check(
        endpoint, timeout_ms=timeout_ms, expected_status=expected_status, retries=retries
    )
    typer.echo(f"{'✅' if healthy else '❌'} {endpoint}")
    raise typer.Exit(0 if healthy else 1)


@app.command()
def readiness(
    environment: Annotated[str, typer.Argument(help="development, staging or production")],
    require_env: Annotated[
        str | None, typer.Option("--require-env", help="Comma-separated variables")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Report whether an environment is ready for a deployment."""
    from devkit.operations import check_deployment_readiness

    with handle_errors():
        status = check_deployment_readiness(environment, required_env=split_csv(require_env))

    if json_output:
        echo_json(status.to_dict())
    else:
        typer.echo(f"\n🚀 {status.environment} (version {status.version})\n")
        for check in status.checks:
            typer.echo(f"  {'✅' if check.passed else '❌'} {check.name}")
            if check.message:
                typer.echo(f"     └─ {check.message}")
        typer.echo()
    raise typer.Exit(0 if status.healthy else 1)


@app.command("rollout-guard")
def rollout_guard_command(
    error_budget: Annotated[
        float, typer.Option("--error-budget", help="Remaining error budget (0-1)")
    ],
    incidents: Annotated[
        list[str] | None, typer.Option("--incident", help="Open incident id (repeatable)")
    ] = None,
    freeze: Annotated[bool, typer.Option("--freeze", help="A change freeze is active")] = False,
    min_approvals: Annotated[
        int | None, typer.Option("--min-approvals", help="Approvals required")
    ] = None,
    approvals: Annotated[int, typer.Option("--approvals", help="Approvals collected")] = 0,
) -> None:
    """Decide whether a rollout may proceed."""
    from devkit.operations import rollout_guard

    result = rollout_guard(
        error_budget_remaining=error_budget,
        incidents_open=incidents,
        change_freeze=freeze,
        minimum_approvals=min_approvals,
        approvals_collected=approvals,
    )
    if not result.allow:
        print_lines("⛔ Rollout blocked:", result.reasons)
        raise typer.Exit(1)
    typer.echo("✅ Rollout allowed")


@app.command("log-schemas")
def log_schemas(
    schema_dir: Annotated[
        Path | None, typer.Option("--dir", help="Schema directory", file_okay=False)
    ] = None,
    required_fields: Annotated[
        list[str] | None, typer.Option("--field", help="Required top-level field (repeatable)")
    ] = None,
) -> None:
    """Check log schema files for required fields."""
    from devkit.operations import verify_log_schemas

    report = verify_log_schemas(schema_dir=schema_dir, required_fields=required_fields)
    if report.issues:
        print_lines(
            "❌ Log schema issues:", [f"{issue.file}: {issue.message}" for issue in report.issues]
        )
        raise typer.Exit(1)
    typer.echo(f"✅ {report.files_checked} schema file(s) valid")


@app.command("bootstrap-env")
def bootstrap_env(
    manifest: Annotated[
        Path, typer.Argument(help="Environment manifest (JSON)", exists=True, dir_okay=False)
    ],
    output_dir: Annotated[
        Path | None, typer.Option("--output-dir", help="Where .env.example goes")
    ] = None,
    compose_dir: Annotated[
        Path | None, typer.Option("--compose-dir", help="Where compose files go")
    ] = None,
    port_map: Annotated[
        Path | None, typer.Option("--port-map", help="Port map JSON path")
    ] = None,
    overwrite: Annotated[
        bool, typer.Option("--overwrite", help="Replace existing files")
    ] = False,
) -> None:
    """Scaffold .env.example, compose files and a port map from a manifest."""
    from devkit.operations import bootstrap_env_from_manifest

    with handle_errors():
        result = bootstrap_env_from_manifest(
            manifest,
            output_dir=output_dir,
            compose_dir=compose_dir,
            port_map_path=port_map,
            overwrite=overwrite,
        )
    if result.missing:
        print_lines("⚠️  Manifest sections not provided:", result.missing)


@app.command()
def iac(
    terraform: Annotated[
        list[str] | None, typer.Option("--terraform", help="Terraform directory (repeatable)")
    ] = None,
    terragrunt: Annotated[
        list[str] | None, typer.Option("--terragrunt", help="Terragrunt directory (repeatable)")
    ] = None,
    cloudformation: Annotated[
        list[str] | None,
        typer.Option("--cloudformation", help="CloudFormation template (repeatable)"),
    ] = None,
    policy_packs: Annotated[
        Path | None,
        typer.Option("--policy-packs", help="JSON list of policy packs", exists=True, dir_okay=False),
    ] = None,
    fail_fast: Annotated[
        bool, typer.Option("--fail-fast", help="Stop each category at its first failure")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Validate Terraform, Terragrunt, CloudFormation and policy packs."""
    from devkit.operations import PolicyPack, validate_infrastructure

    packs = None
    if policy_packs:
        data = read_json_file(policy_packs)
        try:
            packs = [PolicyPack(**item) for item in data]
        except TypeError as e:
            raise typer.BadParameter(str(e), param_hint="--policy-packs") from e

    with handle_errors():
        report = validate_infrastructure(
            terraform_dirs=terraform,
            terragrunt_dirs=terragrunt,
            cloudformation_templates=cloudformation,
            policy_packs=packs,
            fail_fast=fail_fast,
        )

    if json_output:
        echo_json(report.to_dict())
    raise typer.Exit(0 if report.ok else 1)
