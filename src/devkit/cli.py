"""devkit command line.

``devkit <group> <command>``; run ``devkit --help`` for the groups. The
root callback loads configuration and sets up logging before any command
runs, so every group shares the same ``--config``/``--verbose``/``--quiet``/
``--ci`` behaviour.
"""

from pathlib import Path
from typing import Annotated

import typer
import yaml

from devkit import __version__, commands
from devkit.commands import (
    ai,
    automation,
    data,
    deps,
    dx,
    git,
    lint,
    npm,
    observability,
    ops,
    release,
    security,
)
from devkit.commands import test as test_commands
from devkit.config import load_config
from devkit.utils.logging import configure_from_cli, get_logger

app = typer.Typer(
    name="devkit",
    help="Development lifecycle scripts for TypeScript monorepos",
    add_completion=False,
    no_args_is_help=True,
)

GROUPS = {
    "git": git.app,
    "npm": npm.app,
    "deps": deps.app,
    "lint": lint.app,
    "test": test_commands.app,
    "security": security.app,
    "release": release.app,
    "ops": ops.app,
    "automation": automation.app,
    "dx": dx.app,
    "ai": ai.app,
    "data": data.app,
    "observability": observability.app,
}
for group_name, group_app in GROUPS.items():
    app.add_typer(group_app, name=group_name)

_logger = get_logger()


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"devkit {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Configuration file", exists=True, dir_okay=False),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Debug output with timestamps")
    ] = False,
    quiet: Annotated[
        bool, typer.Option("--quiet", "-q", help="Only warnings and errors")
    ] = False,
    ci: Annotated[bool, typer.Option("--ci", help="JSON log lines for CI")] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version", callback=_print_version, is_eager=True, help="Show version and exit"
        ),
    ] = False,
) -> None:
    """Security, release, operations and developer-experience checks for
    TypeScript monorepos.
    """
    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    try:
        loaded = load_config(config_path=config)
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except (ValueError, yaml.YAMLError) as e:
        _logger.error(f"Invalid configuration: {e}")
        raise typer.Exit(1)

    # config can ask for JSON logs even without --ci
    if loaded.ci.json_output and not ci:
        configure_from_cli(verbose=verbose, quiet=quiet, ci=True)
    if loaded.config_path:
        _logger.debug(f"Using configuration {loaded.config_path}")
    commands.set_config(loaded)


@app.command()
def check(
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
    terraform: Annotated[
        bool, typer.Option("--terraform", help="Also require terraform")
    ] = False,
) -> None:
    """Check that the external tools devkit drives are installed.

    Exit codes: 0 all present, 1 a required tool is missing, 2 only
    optional tools are missing.
    """
    from devkit.commands import echo_json, print_lines
    from devkit.utils.preflight import PreflightChecker

    tools = commands.get_config().tools
    result = PreflightChecker().check_all(
        secret_scanner=tools.secret_scanner,
        sbom_tool=tools.sbom,
        signer=tools.signer,
        include_terraform=terraform,
    )
    exit_code = 1 if result.errors else 2 if result.warnings else 0

    if json_output:
        echo_json(result.to_dict())
        raise typer.Exit(0 if result.success else 1)

    typer.echo("\n🔍 External tools\n")
    for tool in result.checks:
        marker = "✅" if tool.available else "❌"
        version = f" ({tool.version})" if tool.version else ""
        kind = "required" if tool.required else "optional"
        typer.echo(f"  {marker} {tool.name}{version} [{kind}]")
        detail = tool.path if tool.available else tool.message
        if detail:
            typer.echo(f"     └─ {detail}")
    typer.echo()

    if exit_code == 1:
        print_lines("❌ Missing required tools:", result.errors)
    elif exit_code == 2:
        print_lines("⚠️  Missing optional tools:", result.warnings)
    else:
        typer.echo("✅ All tools available")
    raise typer.Exit(exit_code)


@app.command()
def init(
    force: Annotated[bool, typer.Option("--force", help="Overwrite an existing file")] = False,
) -> None:
    """Write .devkit/config.yaml with the default settings."""
    from devkit.config import create_default_config

    config_file = Path(".devkit") / "config.yaml"
    if config_file.exists() and not force:
        _logger.error(f"{config_file} already exists (use --force to replace it)")
        raise typer.Exit(1)

    config_file.parent.mkdir(exist_ok=True)
    config_file.write_text(create_default_config(), encoding="utf-8")
    _logger.success(f"Wrote {config_file}")
    typer.echo("Review the tool and policy sections, then run 'devkit check'.")


if __name__ == "__main__":
    app()
