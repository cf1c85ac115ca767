"""Unit tests for git helpers."""

from unittest.mock import patch

import pytest

from devkit import git
from devkit.errors import CommandError, ValidationError
from devkit.utils.exec import CommandResult


class TestQueries:
    """Tests for read-only git queries."""

    def test_current_branch(self) -> None:
        """Test the branch name is stripped."""
        with patch("devkit.git.run_command", return_value=CommandResult(0, "main\n")) as mock_run:
            assert git.get_current_branch() == "main"

        assert mock_run.call_args.args == ("git", ["rev-parse", "--abbrev-ref", "HEAD"])

    def test_clean_working_directory(self) -> None:
        """Test empty porcelain output means clean."""
        with patch("devkit.git.run_command", return_value=CommandResult(0, "")):
            assert git.is_working_directory_clean()

        with patch("devkit.git.run_command", return_value=CommandResult(0, " M src/a.ts\n")):
            assert not git.is_working_directory_clean()

    def test_changed_files(self) -> None:
        """Test diff output is split into file names."""
        with patch(
            "devkit.git.run_command", return_value=CommandResult(0, "src/a.ts\nsrc/b.ts\n")
        ):
            assert git.get_changed_files() == ["src/a.ts", "src/b.ts"]

    def test_failing_query_returns_empty(self) -> None:
        """Test a failed git call yields an empty list."""
        with patch("devkit.git.run_command", return_value=CommandResult(128, "", "not a repo")):
            assert git.get_commit_history() == []
            assert git.list_tags() == []

    def test_list_branches_strips_markers(self) -> None:
        """Test branch list entries are trimmed."""
        output = "* main\n  feature/x\n  remotes/origin/main\n"
        with patch("devkit.git.run_command", return_value=CommandResult(0, output)):
            assert git.list_branches() == ["* main", "feature/x", "remotes/origin/main"]

    def test_history_limit(self) -> None:
        """Test the limit is passed as -N."""
        with patch("devkit.git.run_command", return_value=CommandResult(0, "abc fix\n")) as mock_run:
            assert git.get_commit_history(5) == ["abc fix"]

        assert mock_run.call_args.args[1] == ["log", "--oneline", "-5"]


class TestMutations:
    """Tests for git operations that change state."""

    def test_stage_nothing_skips_git(self) -> None:
        """Test staging an empty list does not call git."""
        with patch("devkit.git.run_command") as mock_run:
            git.stage_files([])

        mock_run.assert_not_called()

    def test_commit_rejects_blank_message(self) -> None:
        """Test a whitespace message raises ValidationError."""
        with pytest.raises(ValidationError, match="cannot be empty"):
            git.commit("   ")

    def test_commit_passes_options(self) -> None:
        """Test extra options follow the message."""
        with patch("devkit.git.run_command", return_value=CommandResult(0)) as mock_run:
            git.commit("feat: add x", ["--no-verify"])

        assert mock_run.call_args.args[1] == ["commit", "-m", "feat: add x", "--no-verify"]

    def test_push_defaults_to_current_branch(self) -> None:
        """Test push resolves the current branch first."""
        with patch(
            "devkit.git.run_command",
            side_effect=[CommandResult(0, "feature/x\n"), CommandResult(0)],
        ) as mock_run:
            git.push()

        assert mock_run.call_args.args[1] == ["push", "-u", "origin", "feature/x"]

    def test_failing_mutation_raises(self) -> None:
        """Test a failing push propagates CommandError."""
        with patch("devkit.git.run_command", side_effect=CommandError("push failed")):
            with pytest.raises(CommandError):
                git.push("main")

    def test_annotated_tag(self) -> None:
        """Test a message makes an annotated tag."""
        with patch("devkit.git.run_command", return_value=CommandResult(0)) as mock_run:
            git.create_tag("v1.2.0", "Release 1.2.0")

        assert mock_run.call_args.args[1] == ["tag", "-a", "v1.2.0", "-m", "Release 1.2.0"]

    def test_lightweight_tag(self) -> None:
        """Test no message makes a lightweight tag."""
        with patch("devkit.git.run_command", return_value=CommandResult(0)) as mock_run:
            git.create_tag("v1.2.0")

        assert mock_run.call_args.args[1] == ["tag", "v1.2.0"]

    def test_create_branch_from_start_point(self) -> None:
        """Test the start point is passed to checkout -b."""
        with patch("devkit.git.run_command", return_value=CommandResult(0)) as mock_run:
            git.create_branch("release/1.2", "origin/main")

        assert mock_run.call_args.args[1] == ["checkout", "-b", "release/1.2", "origin/main"]

    def test_switch_branch(self) -> None:
        """Test switching checks out the named branch."""
        with patch("devkit.git.run_command", return_value=CommandResult(0)) as mock_run:
            git.switch_branch("feature/x")

        assert mock_run.call_args.args[1] == ["checkout", "feature/x"]

    def test_status_is_not_checked(self) -> None:
        """Test the raw porcelain result is returned even on failure."""
        with patch("devkit.git.run_command", return_value=CommandResult(128, "", "fatal")) as mock_run:
            result = git.get_status()

        assert result.code == 128
        assert mock_run.call_args.kwargs["check"] is False
