"""Node test runner helpers for compiled TypeScript packages."""

from pathlib import Path

from devkit.utils.exec import measure, run_command
from devkit.utils.files import find_files
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

TEST_GLOB = "dist/**/*.test.js"


def run_tests(coverage: bool = False, watch: bool = False, flags: list[str] | None = None) -> None:
    """Run ``node --test`` over the compiled test files.

    Raises:
        CommandError: If any test fails
    """
    args = ["--test"]
    if coverage:
        args.append("--coverage")
    if watch:
        args.append("--watch")
    args.append(TEST_GLOB)
    args.extend(flags or [])

    with measure("Tests"):
        run_command("node", args, capture=not watch)

    logger.success("Tests completed")


def run_tests_coverage() -> None:
    logger.info("Running tests with coverage...")
    with measure("Coverage analysis"):
        run_command("node", ["--test", "--coverage", TEST_GLOB])

    logger.success("Coverage report generated")


def watch_tests() -> int:
    logger.info("Starting test watch mode...")
    return run_command(
        "node", ["--test", "--watch", TEST_GLOB], check=False, capture=False
    ).code


def find_test_files(pattern: str = r"\.test\.ts$", root: str | Path | None = None) -> list[Path]:
    """TypeScript test sources below root (default: current directory)."""
    return find_files(root or Path.cwd(), pattern)


def validate_tests(root: str | Path | None = None) -> bool:
    """Check that the project has at least one test file."""
    test_files = find_test_files(root=root)
    if not test_files:
        logger.warning("No test files found")
        return False

    logger.info("Found %d test file(s)", len(test_files))
    return True
