"""ESLint and Prettier runners (invoked through npx)."""

from devkit.utils.exec import measure, run_command
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_EXTENSIONS = [".ts", ".tsx"]
DEFAULT_FORMAT_PATHS = ["src/**/*.ts"]
LINT_REPORT = "lint-report.json"


def run_eslint(
    paths: list[str] | None = None,
    fix: bool = False,
    ext: list[str] | None = None,
    verbose: bool = False,
    flags: list[str] | None = None,
) -> None:
    """Run ESLint.

    Lint errors raise CommandError unless ``fix`` is set, since ESLint
    still reports unfixable problems after fixing what it can.
    """
    args = ["eslint", *(paths or ["."]), "--ext", ",".join(ext or DEFAULT_EXTENSIONS)]
    if fix:
        args.append("--fix")
    if verbose:
        args.extend(["--format", "detailed"])
    args.extend(flags or [])

    with measure("ESLint"):
        run_command("npx", args, check=not fix)

    logger.success(f"Linting completed{' and fixed' if fix else ''}")


def check_format(paths: list[str] | None = None, flags: list[str] | None = None) -> bool:
    """Check formatting with Prettier. Never raises.

    Returns:
        True if every file is formatted
    """
    args = ["prettier", "--check", *(paths or DEFAULT_FORMAT_PATHS), *(flags or [])]
    with measure("Format check"):
        result = run_command("npx", args, check=False)

    logger.info("Format check completed")
    return result.ok


def fix_format(paths: list[str] | None = None, flags: list[str] | None = None) -> None:
    args = ["prettier", "--write", *(paths or DEFAULT_FORMAT_PATHS), *(flags or [])]
    with measure("Format fix"):
        run_command("npx", args)

    logger.success("Code formatting fixed")


def lint_all(fix: bool = False) -> None:
    """ESLint followed by a Prettier check (or fix)."""
    logger.info("Running all lint checks...")
    try:
        run_eslint(fix=fix)
        if fix:
            fix_format()
        else:
            check_format()
    except Exception as e:
        logger.error("Linting failed: %s", e)
        raise

    logger.success("All lint checks passed")


def watch_lint() -> int:
    """Run ESLint in watch mode with inherited stdio until it exits."""
    logger.info("Starting lint watch mode...")
    return run_command(
        "npx", ["eslint", ".", "--ext", ".ts,.tsx", "--watch"], check=False, capture=False
    ).code


def generate_lint_report() -> str:
    """Write ESLint results as JSON to lint-report.json."""
    args = ["eslint", ".", "--ext", ".ts,.tsx", "--format", "json", "--output-file", LINT_REPORT]
    with measure("Lint report generation"):
        run_command("npx", args, check=False)

    logger.success(f"Lint report generated ({LINT_REPORT})")
    return LINT_REPORT
