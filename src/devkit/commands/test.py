"""Test subcommands for the Node test runner."""

from typing import Annotated

import typer

from devkit.commands import handle_errors

app = typer.Typer(help="Node test runner helpers", no_args_is_help=True)


@app.command()
def run(
    coverage: Annotated[bool, typer.Option("--coverage", help="Collect coverage")] = False,
    watch: Annotated[bool, typer.Option("--watch", help="Re-run on changes")] = False,
) -> None:
    """Run the compiled test files."""
    from devkit.testing import run_tests

    with handle_errors():
        run_tests(coverage=coverage, watch=watch)


@app.command()
def coverage() -> None:
    """Run tests with coverage."""
    from devkit.testing import run_tests_coverage

    with handle_errors():
        run_tests_coverage()


@app.command()
def watch() -> None:
    """Run tests in watch mode."""
    from devkit.testing import watch_tests

    raise typer.Exit(watch_tests())


@app.command()
def validate() -> None:
    """Check that the project has at least one test file."""
    from devkit.testing import validate_tests

    if not validate_tests():
        raise typer.Exit(1)
