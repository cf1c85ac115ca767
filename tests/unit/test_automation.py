"""Unit tests for bulk commands, environment validation and drift detection."""

from pathlib import Path
from unittest.mock import patch

import pytest

from devkit.automation.bulk import run_bulk_repo_task
from devkit.automation.drift import detect_drift
from devkit.automation.env import CommandRequirement, compare_semver, validate_env
from devkit.utils.exec import CommandResult


class TestBulk:
    """Tests for running a command across repositories."""

    def test_no_targets(self) -> None:
        """Test an empty target list runs nothing."""
        with patch("devkit.automation.bulk.run_command") as mock_run:
            assert run_bulk_repo_task("git pull", []) == []

        mock_run.assert_not_called()

    def test_runs_in_every_target(self, tmp_path: Path) -> None:
        """Test each target gets one run with the split command line."""
        targets = [tmp_path / name for name in ("a", "b", "c")]
        with patch(
            "devkit.automation.bulk.run_command", return_value=CommandResult(0, "ok")
        ) as mock_run:
            results = run_bulk_repo_task('git commit -m "chore: bump"', targets, concurrency=2)

        assert sorted(r.target for r in results) == sorted(str(t) for t in targets)
        assert all(r.ok for r in results)
        assert mock_run.call_args.args == ("git", ["commit", "-m", "chore: bump"])

    def test_stop_on_error(self, tmp_path: Path) -> None:
        """Test the first failure stops scheduling further targets."""
        targets = [tmp_path / name for name in ("a", "b", "c")]
        with patch(
            "devkit.automation.bulk.run_command", return_value=CommandResult(1, "", "conflict")
        ):
            results = run_bulk_repo_task(
                "git pull", targets, concurrency=1, stop_on_error=True
            )

        assert len(results) == 1
        assert results[0].to_dict() == {
            "target": str(targets[0]),
            "exit_code": 1,
            "stdout": "",
            "stderr": "conflict",
        }

    def test_failures_collected_without_stop(self, tmp_path: Path) -> None:
        """Test every target runs when stop_on_error is off."""
        targets = [tmp_path / "a", tmp_path / "b"]
        with patch(
            "devkit.automation.bulk.run_command", return_value=CommandResult(1)
        ):
            results = run_bulk_repo_task("npm test", targets, concurrency=1)

        assert [r.ok for r in results] == [False, False]


class TestValidateEnv:
    """Tests for env var and tool version checks."""

    @pytest.mark.parametrize(
        ("a", "b", "sign"),
        [
            ("v18.2.0", "18.2.0", 0),
            ("18.2", "18.2.0", 0),
            ("16.20.1", "18.0.0", -1),
            ("10.0.0", "9.9.9", 1),
        ],
    )
    def test_compare_semver(self, a: str, b: str, sign: int) -> None:
        """Test versions compare numerically with prefixes ignored."""
        result = compare_semver(a, b)

        assert (result > 0) - (result < 0) == sign

    def test_requirement_from_camel_case(self) -> None:
        """Test minVersion is read from manifest-style documents."""
        requirement = CommandRequirement.from_dict({"cmd": "node", "minVersion": "18.0.0"})

        assert requirement.args == ["--version"]
        assert requirement.min_version == "18.0.0"

    def test_missing_and_empty_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test unset and empty variables are both missing."""
        monkeypatch.setenv("DEVKIT_SET", "1")
        monkeypatch.setenv("DEVKIT_EMPTY", "")
        monkeypatch.delenv("DEVKIT_UNSET", raising=False)

        result = validate_env(["DEVKIT_SET", "DEVKIT_EMPTY", "DEVKIT_UNSET"])

        assert result.missing_env == ["DEVKIT_EMPTY", "DEVKIT_UNSET"]
        assert not result.ok

    def test_command_versions(self) -> None:
        """Test unavailable and outdated tools fail."""
        with patch(
            "devkit.automation.env.run_command",
            side_effect=[
                CommandResult(0, "v16.20.1\n"),
                CommandResult(127),
                CommandResult(0, "9.1.0"),
            ],
        ):
            result = validate_env(
                required_commands=[
                    CommandRequirement("node", min_version="18.0.0"),
                    CommandRequirement("pnpm"),
                    CommandRequirement("npm", min_version="9.0.0"),
                ]
            )

        assert result.failed_commands == [
            "node version v16.20.1 < required 18.0.0",
            "pnpm (not available)",
        ]


class TestDrift:
    """Tests for drift detection."""

    def test_dirty_files(self) -> None:
        """Test porcelain lines become file paths."""
        output = " M infra/main.tf\n?? infra/new.tf\n"
        with patch(
            "devkit.automation.drift.run_command", return_value=CommandResult(0, output)
        ) as mock_run:
            report = detect_drift(["infra"])

        assert report.drifted
        assert report.dirty_files == ["infra/main.tf", "infra/new.tf"]
        assert mock_run.call_args.args[1] == ["status", "--porcelain", "--", "infra"]

    def test_ignore_untracked(self) -> None:
        """Test untracked files can be excluded."""
        with patch(
            "devkit.automation.drift.run_command", return_value=CommandResult(0, "")
        ) as mock_run:
            report = detect_drift(["infra", "k8s"], include_untracked=False)

        assert not report.drifted
        assert mock_run.call_args.args[1] == [
            "status",
            "--porcelain",
            "--untracked-files=no",
            "--",
            "infra",
            "k8s",
        ]
