"""Lint subcommands: ESLint and Prettier."""

from typing import Annotated

import typer

from devkit.commands import handle_errors, split_csv

app = typer.Typer(help="ESLint and Prettier runners", no_args_is_help=True)


@app.command()
def eslint(
    paths: Annotated[list[str] | None, typer.Argument(help="Paths to lint")] = None,
    fix: Annotated[bool, typer.Option("--fix", help="Fix what ESLint can")] = False,
    ext: Annotated[
        str | None, typer.Option("--ext", help="Comma-separated extensions (default: .ts,.tsx)")
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--detailed", help="Use the detailed formatter")
    ] = False,
) -> None:
    """Run ESLint."""
    from devkit.lint import run_eslint

    with handle_errors():
        run_eslint(paths=paths, fix=fix, ext=split_csv(ext), verbose=verbose)


@app.command("format")
def format_command(
    paths: Annotated[list[str] | None, typer.Argument(help="Globs to format")] = None,
    check: Annotated[bool, typer.Option("--check", help="Only check formatting")] = False,
) -> None:
    """Fix (or check) formatting with Prettier."""
    from devkit.lint import check_format, fix_format

    with handle_errors():
        if check:
            if not check_format(paths):
                raise typer.Exit(1)
            return
        fix_format(paths)


@app.command("all")
def all_checks(
    fix: Annotated[bool, typer.Option("--fix", help="Fix lint and formatting issues")] = False,
) -> None:
    """ESLint followed by a Prettier check or fix."""
    from devkit.lint import lint_all

    with handle_errors():
        lint_all(fix=fix)


@app.command()
def watch() -> None:
    """Run ESLint in watch mode."""
    from devkit.lint import watch_lint

    raise typer.Exit(watch_lint())


@app.command()
def report() -> None:
    """Write ESLint results to lint-report.json."""
    from devkit.lint import generate_lint_report

    with handle_errors():
        path = generate_lint_report()
    typer.echo(f"📄 Lint report written to: {path}")
