"""git subcommands: thin wrappers over devkit.git."""

from typing import Annotated

import typer

from devkit import git as git_ops
from devkit.commands import handle_errors

app = typer.Typer(help="Git helpers for the current repository", no_args_is_help=True)


@app.command()
def branch() -> None:
    """Print the current branch."""
    with handle_errors():
        typer.echo(git_ops.get_current_branch())


@app.command()
def status() -> None:
    """Show short status and exit 1 when the tree is dirty."""
    with handle_errors():
        result = git_ops.get_status()
    lines = [line for line in result.stdout.splitlines() if line.strip()]
    if not lines:
        typer.echo("✅ Working directory clean")
        raise typer.Exit(0)
    for line in lines:
        typer.echo(f"  {line}")
    raise typer.Exit(1)


@app.command()
def changed() -> None:
    """List files with unstaged modifications."""
    with handle_errors():
        for path in git_ops.get_changed_files():
            typer.echo(path)


@app.command()
def add(
    files: Annotated[list[str], typer.Argument(help="Files to stage")],
) -> None:
    """Stage files."""
    with handle_errors():
        git_ops.stage_files(files)


@app.command()
def commit(
    message: Annotated[str, typer.Option("--message", "-m", help="Commit message")],
    amend: Annotated[bool, typer.Option("--amend", help="Amend the previous commit")] = False,
    no_verify: Annotated[bool, typer.Option("--no-verify", help="Skip commit hooks")] = False,
) -> None:
    """Create a commit from the staged changes."""
    options = []
    if amend:
        options.append("--amend")
    if no_verify:
        options.append("--no-verify")
    with handle_errors():
        git_ops.commit(message, options)


@app.command()
def log(
    limit: Annotated[int, typer.Option("--limit", "-n", help="Number of commits")] = 10,
) -> None:
    """Show recent commits, one per line."""
    with handle_errors():
        for line in git_ops.get_commit_history(limit):
            typer.echo(line)


@app.command()
def push(
    branch_name: Annotated[str | None, typer.Argument(help="Branch (default: current)")] = None,
    remote: Annotated[str, typer.Option("--remote", help="Remote name")] = "origin",
) -> None:
    """Push a branch."""
    with handle_errors():
        git_ops.push(branch_name, remote)


@app.command()
def pull(
    branch_name: Annotated[str | None, typer.Argument(help="Branch (default: current)")] = None,
    remote: Annotated[str, typer.Option("--remote", help="Remote name")] = "origin",
) -> None:
    """Pull a branch."""
    with handle_errors():
        git_ops.pull(branch_name, remote)


@app.command("create-branch")
def create_branch(
    name: Annotated[str, typer.Argument(help="New branch name")],
    start_point: Annotated[str, typer.Option("--from", help="Start point")] = "HEAD",
) -> None:
    """Create and check out a branch."""
    with handle_errors():
        git_ops.create_branch(name, start_point)


@app.command()
def switch(
    name: Annotated[str, typer.Argument(help="Branch to switch to")],
) -> None:
    """Switch to an existing branch."""
    with handle_errors():
        git_ops.switch_branch(name)


@app.command()
def branches() -> None:
    """List local branches."""
    with handle_errors():
        for name in git_ops.list_branches():
            typer.echo(name)


@app.command()
def tags() -> None:
    """List tags."""
    with handle_errors():
        for name in git_ops.list_tags():
            typer.echo(name)


@app.command()
def tag(
    name: Annotated[str, typer.Argument(help="Tag name")],
    message: Annotated[
        str | None, typer.Option("--message", "-m", help="Annotate the tag with a message")
    ] = None,
) -> None:
    """Create a tag on HEAD."""
    with handle_errors():
        git_ops.create_tag(name, message)
