"""Developer-experience subcommands: commits, shared configs, ownership."""

from pathlib import Path
from typing import Annotated

import typer

from devkit.commands import echo_json, get_config, handle_errors, print_lines

app = typer.Typer(help="Commit, config and ownership guardrails", no_args_is_help=True)


@app.command()
def commits(
    from_ref: Annotated[str, typer.Option("--from", help="Start of the range")] = "origin/main",
    to_ref: Annotated[str, typer.Option("--to", help="End of the range")] = "HEAD",
    allow_merge: Annotated[
        bool, typer.Option("--allow-merge", help="Accept merge commits")
    ] = False,
    types: Annotated[
        list[str] | None, typer.Option("--type", help="Allowed commit type (repeatable)")
    ] = None,
    no_scope: Annotated[
        bool, typer.Option("--no-require-scope", help="Make the scope optional")
    ] = False,
    max_commits: Annotated[int, typer.Option("--max", help="Commits to inspect")] = 50,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Check commit subjects against the Conventional Commits format."""
    from devkit.dx import validate_commits

    with handle_errors():
        result = validate_commits(
            from_ref=from_ref,
            to_ref=to_ref,
            allow_merge_commits=allow_merge,
            allowed_types=types,
            require_scope=not no_scope,
            max_commits=max_commits,
        )

    if json_output:
        echo_json(result.to_dict())
    elif not result.valid:
        print_lines(
            "❌ Invalid commits:",
            [f"{c.hash[:8]} {c.message} ({c.reason})" for c in result.invalid_commits],
        )
    raise typer.Exit(0 if result.valid else 1)


@app.command("shared-configs")
def shared_configs(
    root: Annotated[
        Path | None, typer.Option("--root", help="Monorepo root", file_okay=False)
    ] = None,
    no_tsconfig: Annotated[
        bool, typer.Option("--no-tsconfig", help="Skip the tsconfig check")
    ] = False,
    no_eslint: Annotated[
        bool, typer.Option("--no-eslint", help="Skip the ESLint check")
    ] = False,
) -> None:
    """Report packages that do not use the shared config presets."""
    from devkit.dx import ensure_shared_configs

    results = ensure_shared_configs(
        root=root,
        require_tsconfig=not no_tsconfig,
        require_eslint=not no_eslint,
        names=get_config().shared_configs,
    )
    for result in results:
        print_lines(f"📦 {result.package_dir}", result.issues)
    raise typer.Exit(1 if results else 0)


@app.command()
def monorepo(
    root: Annotated[
        Path | None, typer.Option("--root", help="Monorepo root", file_okay=False)
    ] = None,
    exempt: Annotated[
        list[str] | None,
        typer.Option("--eslint-exempt", help="Package needing no eslint.config.js (repeatable)"),
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Validate every package's lint, format and TypeScript configuration.

    Exit codes:
        0: All packages valid
        1: Configuration errors
        2: Warnings only
    """
    from devkit.dx import validate_monorepo_configs

    summary = validate_monorepo_configs(
        root=root, names=get_config().shared_configs, eslint_exempt=exempt
    )

    if json_output:
        echo_json(summary.to_dict())
    else:
        typer.echo(f"\n📦 Checked {summary.total_packages} package(s)\n")
        for result in summary.results:
            if not result.errors and not result.warnings:
                continue
            typer.echo(f"  {result.package_name} ({result.package_path})")
            for error in result.errors:
                typer.echo(f"     ❌ {error}")
            for warning in result.warnings:
                typer.echo(f"     ⚠️  {warning}")
        typer.echo()

    if summary.packages_with_errors:
        raise typer.Exit(1)
    raise typer.Exit(2 if summary.packages_with_warnings else 0)


@app.command()
def codeowners(
    files: Annotated[
        list[str] | None, typer.Argument(help="Files to check (default: changed files)")
    ] = None,
    root: Annotated[
        Path | None, typer.Option("--root", help="Repository root", file_okay=False)
    ] = None,
) -> None:
    """Check that files are covered by a CODEOWNERS rule."""
    from devkit.dx import check_codeowners_coverage

    with handle_errors():
        report = check_codeowners_coverage(files=files, root=root)
    if report.missing_owners:
        print_lines("❌ Files without an owner:", report.missing_owners)
        raise typer.Exit(1)
    typer.echo(f"✅ All files covered ({report.rules_evaluated} rule(s))")
