"""Unit tests for the node test runner helpers."""

from pathlib import Path
from unittest.mock import patch

import pytest

from devkit.errors import CommandError
from devkit.testing import (
    TEST_GLOB,
    find_test_files,
    run_tests,
    run_tests_coverage,
    validate_tests,
    watch_tests,
)
from devkit.utils.exec import CommandResult


class TestRunTests:
    """Tests for node --test invocations."""

    def test_plain_run(self) -> None:
        """Test the compiled test glob is passed to node --test."""
        with patch("devkit.testing.run_command", return_value=CommandResult(0)) as mock_run:
            run_tests()

        assert mock_run.call_args.args == ("node", ["--test", TEST_GLOB])
        assert mock_run.call_args.kwargs["capture"] is True

    def test_coverage_and_flags(self) -> None:
        """Test coverage and extra flags are appended."""
        with patch("devkit.testing.run_command", return_value=CommandResult(0)) as mock_run:
            run_tests(coverage=True, flags=["--test-only"])

        assert mock_run.call_args.args[1] == ["--test", "--coverage", TEST_GLOB, "--test-only"]

    def test_watch_inherits_stdio(self) -> None:
        """Test watch mode does not capture output."""
        with patch("devkit.testing.run_command", return_value=CommandResult(0)) as mock_run:
            run_tests(watch=True)

        assert "--watch" in mock_run.call_args.args[1]
        assert mock_run.call_args.kwargs["capture"] is False

    def test_failure_raises(self) -> None:
        """Test failing tests propagate CommandError."""
        with patch("devkit.testing.run_command", side_effect=CommandError("1 failing")):
            with pytest.raises(CommandError):
                run_tests_coverage()

    def test_watch_returns_exit_code(self) -> None:
        """Test watch_tests returns the process exit code."""
        with patch("devkit.testing.run_command", return_value=CommandResult(130)):
            assert watch_tests() == 130


class TestValidateTests:
    """Tests for test file discovery."""

    def test_finds_test_sources(self, tmp_path: Path) -> None:
        """Test a .test.ts file makes the project valid."""
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "app.test.ts").write_text("")

        assert validate_tests(tmp_path) is True

    def test_no_tests(self, tmp_path: Path) -> None:
        """Test a project without tests is reported invalid."""
        (tmp_path / "app.ts").write_text("")

        assert validate_tests(tmp_path) is False

    def test_find_skips_node_modules(self, tmp_path: Path) -> None:
        """Test dependency sources are not counted as project tests."""
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "a.test.ts").write_text("")
        (tmp_path / "node_modules" / "dep").mkdir(parents=True)
        (tmp_path / "node_modules" / "dep" / "b.test.ts").write_text("")

        assert find_test_files(root=tmp_path) == [tmp_path / "src" / "a.test.ts"]
