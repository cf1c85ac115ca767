"""Dependency subcommands: deprecations and vulnerability audits."""

from pathlib import Path
from typing import Annotated

import typer

from devkit.commands import echo_json, get_config, handle_errors

app = typer.Typer(help="Dependency health checks", no_args_is_help=True)


@app.command()
def deprecated(
    fix: Annotated[
        bool, typer.Option("--fix", help="Apply overrides and reinstall")
    ] = False,
    package: Annotated[
        Path | None,
        typer.Option("--package", help="Directory to search for package.json"),
    ] = None,
) -> None:
    """Report deprecated dependencies and optionally fix them.

    Exit codes:
        0: No deprecated dependencies
        2: Deprecated dependencies found
    """
    from devkit.deps import fix_deprecated_deps

    with handle_errors():
        found = fix_deprecated_deps(package_path=package, auto_fix=fix)
    raise typer.Exit(2 if found and not fix else 0)


@app.command()
def audit(
    severity: Annotated[
        str | None,
        typer.Option("--severity", help="Lowest severity counted (default: config)"),
    ] = None,
    dev: Annotated[bool, typer.Option("--dev", help="Include devDependencies")] = False,
    package: Annotated[
        Path | None,
        typer.Option("--package", help="Directory to search for package.json"),
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Audit dependencies for known vulnerabilities.

    Exit codes:
        0: Nothing at or above the severity threshold
        1: Vulnerabilities found
    """
    from devkit.security import audit_dependencies

    vulnerabilities = get_config().vulnerabilities
    with handle_errors():
        summary = audit_dependencies(
            package_path=package,
            severity_threshold=severity or vulnerabilities.severity_threshold,
            include_dev=dev or vulnerabilities.include_dev,
        )

    if json_output:
        echo_json(summary.to_dict())
    else:
        typer.echo("\n🛡️  Dependency Audit\n")
        for level, count in summary.severity_counts.items():
            typer.echo(f"  {level}: {count}")
        for advisory in summary.advisories:
            title = f" - {advisory.title}" if advisory.title else ""
            typer.echo(f"  ❌ {advisory.module} [{advisory.severity}]{title}")
        typer.echo()

    raise typer.Exit(1 if summary.total else 0)
