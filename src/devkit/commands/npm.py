"""npm subcommands: registry auth, .npmrc templates and changesets."""

import os
from pathlib import Path
from typing import Annotated

import typer

from devkit.commands import get_config, handle_errors

app = typer.Typer(help="npm registry and workspace setup", no_args_is_help=True)


@app.command("set-token")
def set_token(
    registry: Annotated[
        str | None,
        typer.Option("--registry", "-r", help="Registry URL (default: config or npmjs)"),
    ] = None,
    local: Annotated[
        bool, typer.Option("--local", "-l", help="Write the project .npmrc instead of ~/.npmrc")
    ] = False,
    token: Annotated[
        str | None,
        typer.Option("--token", help="Auth token (default: NPM_TOKEN, else prompt)"),
    ] = None,
    no_verify: Annotated[
        bool, typer.Option("--no-verify", help="Skip the npm whoami check")
    ] = False,
    skip_if_logged_in: Annotated[
        bool,
        typer.Option("--skip-if-logged-in", help="Do nothing when npm whoami already succeeds"),
    ] = False,
) -> None:
    """Store an npm auth token in .npmrc.

    The token comes from --token, then NPM_TOKEN, then a hidden prompt.
    With --skip-if-logged-in no token is asked for when the registry
    already knows the user.
    """
    from devkit.npm import DEFAULT_REGISTRY, npm_whoami, set_npm_token

    target_registry = registry or get_config().release.registry or DEFAULT_REGISTRY
    if skip_if_logged_in:
        username = npm_whoami(target_registry)
        if username:
            typer.echo(f"✅ Already logged in as {username} on {target_registry}")
            return

    npm_token = token or os.environ.get("NPM_TOKEN")
    if not npm_token:
        npm_token = typer.prompt("npm auth token", hide_input=True)

    with handle_errors():
        path = set_npm_token(
            token=npm_token, registry=target_registry, local=local, verify=not no_verify
        )
    typer.echo(f"🔑 Token written to {path}")


@app.command("add-npmrc")
def add_npmrc_command(
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite an existing .npmrc")
    ] = False,
    path: Annotated[
        Path | None,
        typer.Option("--path", help="Package directory", exists=True, file_okay=False),
    ] = None,
) -> None:
    """Copy the monorepo's .npmrc template into a package."""
    from devkit.npm import add_npmrc

    with handle_errors():
        written = add_npmrc(cwd=path, force=force)
    if written is None:
        raise typer.Exit(2)


@app.command("init-changesets")
def init_changesets(
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite .changeset/config.json")
    ] = False,
) -> None:
    """Create .changeset/config.json with default settings."""
    from devkit.npm import ensure_changeset_config

    with handle_errors():
        ensure_changeset_config(force=force)
