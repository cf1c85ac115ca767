"""Automation subcommands: bulk runs, environment validation and drift."""

from pathlib import Path
from typing import Annotated

import typer

from devkit.automation.env import CommandRequirement
from devkit.commands import echo_json, print_lines

app = typer.Typer(help="Cross-repository automation", no_args_is_help=True)


def _parse_requirement(value: str) -> CommandRequirement:
    cmd, _, min_version = value.partition("@")
    return CommandRequirement(cmd=cmd, min_version=min_version or None)


@app.command()
def bulk(
    command: Annotated[str, typer.Argument(help="Command to run in every target")],
    targets: Annotated[
        list[Path] | None,
        typer.Option("--target", "-t", help="Target directory (repeatable)", file_okay=False),
    ] = None,
    targets_file: Annotated[
        Path | None,
        typer.Option("--targets-file", help="File with one directory per line", dir_okay=False),
    ] = None,
    concurrency: Annotated[
        int | None, typer.Option("--concurrency", "-j", help="Parallel workers (default: CPUs)")
    ] = None,
    stop_on_error: Annotated[
        bool, typer.Option("--stop-on-error", help="Skip pending targets after a failure")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Run one command across many repositories in parallel."""
    from devkit.automation import run_bulk_repo_task

    all_targets: list[str | Path] = list(targets or [])
    if targets_file:
        lines = targets_file.read_text(encoding="utf-8").splitlines()
        all_targets.extend(line.strip() for line in lines if line.strip())
    if not all_targets:
        raise typer.BadParameter("Provide --target or --targets-file")

    results = run_bulk_repo_task(
        command, all_targets, concurrency=concurrency, stop_on_error=stop_on_error
    )
    if json_output:
        echo_json([r.to_dict() for r in results])
    raise typer.Exit(0 if all(r.ok for r in results) else 1)


@app.command("validate-env")
def validate_env_command(
    env: Annotated[
        list[str] | None, typer.Option("--env", help="Required variable (repeatable)")
    ] = None,
    commands: Annotated[
        list[str] | None,
        typer.Option("--command", help="Required tool, optionally tool@min-version (repeatable)"),
    ] = None,
) -> None:
    """Check required environment variables and tool versions."""
    from devkit.automation import validate_env

    result = validate_env(
        required_env=env, required_commands=[_parse_requirement(c) for c in commands or []]
    )
    if result.missing_env:
        print_lines("❌ Missing environment variables:", result.missing_env)
    if result.failed_commands:
        print_lines("❌ Tool requirements not met:", result.failed_commands)
    raise typer.Exit(0 if result.ok else 1)


@app.command()
def drift(
    paths: Annotated[list[str], typer.Argument(help="Paths that must stay unchanged")],
    no_untracked: Annotated[
        bool, typer.Option("--no-untracked", help="Ignore untracked files")
    ] = False,
) -> None:
    """Fail when generated or pinned files have uncommitted changes."""
    from devkit.automation import detect_drift

    report = detect_drift(paths, include_untracked=not no_untracked)
    if report.dirty_files:
        print_lines("❌ Drift detected:", report.dirty_files)
        raise typer.Exit(1)
    typer.echo("✅ No drift detected")
