"""Integration tests for devkit CLI commands.

These tests drive the Typer app end to end. External tools are patched
out; everything else runs against throwaway directories.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from devkit import __version__
from devkit.cli import app
from devkit.security.compliance import validate_licenses
from devkit.utils.exec import CommandResult
from devkit.utils.preflight import PreflightResult, ToolCheck

runner = CliRunner()

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every command from an empty directory so no config is discovered."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _write_json(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestGlobalOptions:
    """Tests for the root callback."""

    def test_version(self) -> None:
        """Test --version prints the package version."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"devkit {__version__}" in result.output

    def test_missing_config_file(self, workdir: Path) -> None:
        """Test a --config path that does not exist is a usage error."""
        result = runner.invoke(app, ["--config", str(workdir / "none.yaml"), "check"])

        assert result.exit_code == 2


class TestInit:
    """Tests for `devkit init`."""

    def test_creates_config(self, workdir: Path) -> None:
        """Test init writes .devkit/config.yaml."""
        result = runner.invoke(app, ["init"])

        assert result.exit_code == 0
        assert (workdir / ".devkit" / "config.yaml").exists()

    def test_refuses_overwrite(self, workdir: Path) -> None:
        """Test an existing config is kept unless --force is given."""
        config_file = workdir / ".devkit" / "config.yaml"
        config_file.parent.mkdir()
        config_file.write_text("tools: {}\n")

        assert runner.invoke(app, ["init"]).exit_code == 1
        assert config_file.read_text() == "tools: {}\n"

        assert runner.invoke(app, ["init", "--force"]).exit_code == 0
        assert "secret_scanner" in config_file.read_text()


class TestCheck:
    """Tests for `devkit check`."""

    def test_json_output(self) -> None:
        """Test --json prints the preflight result."""
        preflight = PreflightResult()
        preflight.add_check(ToolCheck("git", available=True, version="git version 2.44.0"))
        with patch(
            "devkit.utils.preflight.PreflightChecker.check_all", return_value=preflight
        ):
            result = runner.invoke(app, ["check", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["success"] is True
        assert data["checks"][0]["name"] == "git"

    def test_warnings_exit_two(self) -> None:
        """Test missing optional tools exit with 2."""
        preflight = PreflightResult()
        preflight.add_check(ToolCheck("pnpm", available=False, required=False))
        with patch(
            "devkit.utils.preflight.PreflightChecker.check_all", return_value=preflight
        ):
            result = runner.invoke(app, ["check"])

        assert result.exit_code == 2
        assert "Optional tool not found: pnpm" in result.output

    def test_config_selects_tools(self, workdir: Path) -> None:
        """Test configured tool names reach the preflight checker."""
        config_file = workdir / "devkit.yaml"
        config_file.write_text("tools:\n  secret_scanner: trufflehog\n  sbom: cyclonedx\n")
        with patch(
            "devkit.utils.preflight.PreflightChecker.check_all",
            return_value=PreflightResult(),
        ) as mock_check:
            result = runner.invoke(app, ["--config", str(config_file), "check", "--json"])

        assert result.exit_code == 0
        assert mock_check.call_args.kwargs["secret_scanner"] == "trufflehog"
        assert mock_check.call_args.kwargs["sbom_tool"] == "cyclonedx"


class TestNpm:
    """Tests for `devkit npm`."""

    def test_set_token_skips_when_logged_in(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test no token is asked for when npm whoami succeeds."""
        monkeypatch.delenv("NPM_TOKEN", raising=False)
        with patch("devkit.npm.run_command", return_value=CommandResult(0, "octocat\n")):
            result = runner.invoke(app, ["npm", "set-token", "--skip-if-logged-in"])

        assert result.exit_code == 0
        assert "Already logged in as octocat" in result.output
        assert "Token written" not in result.output


class TestOps:
    """Tests for `devkit ops` commands."""

    def test_rollout_blocked(self) -> None:
        """Test a blocked rollout lists its reasons and exits 1."""
        result = runner.invoke(
            app, ["ops", "rollout-guard", "--error-budget", "0.5", "--freeze", "--incident", "INC-7"]
        )

        assert result.exit_code == 1
        assert "Org-wide change freeze is active." in result.output
        assert "Open incidents detected: INC-7" in result.output

    def test_rollout_allowed(self) -> None:
        """Test a healthy state exits 0."""
        result = runner.invoke(app, ["ops", "rollout-guard", "--error-budget", "0.5"])

        assert result.exit_code == 0
        assert "Rollout allowed" in result.output

    def test_log_schemas(self, workdir: Path) -> None:
        """Test schema issues fail the command."""
        schemas = workdir / "schemas"
        schemas.mkdir()
        _write_json(schemas / "api.schema.json", {"name": "api"})

        result = runner.invoke(app, ["ops", "log-schemas", "--dir", str(schemas)])

        assert result.exit_code == 1
        assert 'Missing required field "version".' in result.output


class TestRelease:
    """Tests for `devkit release` commands."""

    def test_canary_unhealthy(self, workdir: Path) -> None:
        """Test threshold breaches exit 1 with reasons."""
        canary = _write_json(workdir / "canary.json", {"errorRate": 3.5, "latencyP95": 120})
        thresholds = _write_json(workdir / "thresholds.json", {"max_error_rate": 1})

        result = runner.invoke(
            app,
            ["release", "canary", "--canary", str(canary), "--thresholds", str(thresholds)],
        )

        assert result.exit_code == 1
        assert "Error rate 3.5% exceeds max 1%" in result.output

    def test_canary_healthy(self, workdir: Path) -> None:
        """Test healthy metrics exit 0."""
        canary = _write_json(workdir / "canary.json", {"errorRate": 0.1})

        result = runner.invoke(app, ["release", "canary", "--canary", str(canary)])

        assert result.exit_code == 0
        assert "Canary healthy" in result.output


class TestData:
    """Tests for `devkit data` commands."""

    def test_pii(self, workdir: Path) -> None:
        """Test findings are printed with their location."""
        (workdir / "users.csv").write_text("name,email\nAda,ada@example.com\n")

        result = runner.invoke(app, ["data", "pii", str(workdir)])

        assert result.exit_code == 0
        assert "users.csv:2:5 [medium] email" in result.output

    def test_pii_fail_on_finding(self, workdir: Path) -> None:
        """Test --fail-on-finding exits non-zero."""
        (workdir / "users.csv").write_text("ada@example.com\n")

        result = runner.invoke(app, ["data", "pii", str(workdir), "--fail-on-finding"])

        assert result.exit_code == 1

    def test_schema_writes_profile(self, workdir: Path) -> None:
        """Test --write-profile saves a reusable baseline."""
        dataset = _write_json(workdir / "data.json", [{"id": 1}, {"id": 2}])
        schema = _write_json(workdir / "schema.json", {"id": "number"})
        profile = workdir / "profile.json"

        result = runner.invoke(
            app,
            [
                "data",
                "schema",
                "--dataset",
                str(dataset),
                "--schema",
                str(schema),
                "--write-profile",
                str(profile),
            ],
        )

        assert result.exit_code == 0
        assert json.loads(profile.read_text())["total_records"] == 2

    def test_schema_fail_on_error(self, workdir: Path) -> None:
        """Test --fail-on-error exits non-zero on invalid records."""
        dataset = _write_json(workdir / "data.json", [{"id": "one"}])
        schema = _write_json(workdir / "schema.json", {"id": "number"})

        result = runner.invoke(
            app,
            ["data", "schema", "--dataset", str(dataset), "--schema", str(schema), "--fail-on-error"],
        )

        assert result.exit_code == 1


class TestSecurity:
    """Tests for `devkit security` commands."""

    def test_env_coverage(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test missing variables exit 1."""
        monkeypatch.setenv("DEVKIT_PRESENT", "1")
        monkeypatch.delenv("DEVKIT_ABSENT", raising=False)

        result = runner.invoke(
            app, ["security", "env-coverage", "--required", "DEVKIT_PRESENT,DEVKIT_ABSENT"]
        )

        assert result.exit_code == 1
        assert "DEVKIT_ABSENT" in result.output

    def test_env_coverage_complete(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a fully covered environment exits 0."""
        monkeypatch.setenv("DEVKIT_PRESENT", "1")

        result = runner.invoke(app, ["security", "env-coverage", "--required", "DEVKIT_PRESENT"])

        assert result.exit_code == 0

    def test_check_uses_default_license_policy(self) -> None:
        """Test 0BSD passes and GPL-2.0 is blocked without a licenses section."""
        findings = type("Scan", (), {"findings": []})()
        licenses = {
            "tiny@1.0.0": {"licenses": "0BSD"},
            "gpl2@1.0.0": {"licenses": "GPL-2.0"},
        }
        with (
            patch("devkit.security.report.scan_secrets", return_value=findings),
            patch("devkit.security.report.get_package_licenses", return_value=licenses),
            patch("devkit.security.report.validate_licenses", wraps=validate_licenses) as spy,
        ):
            result = runner.invoke(
                app, ["security", "check", "--scanner", "gitleaks", "--licenses"]
            )

        assert result.exit_code == 0
        assert "License issues: 1" in result.output
        policy = spy.call_args.args[1]
        assert "0BSD" in policy.allowlist
        assert "GPL-2.0" in policy.blocklist
