"""Unit tests for operational checks and scaffolding."""

import json
import urllib.error
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from devkit.errors import FileError
from devkit.operations.env_bootstrap import (
    PortMapEntry,
    bootstrap_env_from_manifest,
    merge_ports,
)
from devkit.operations.iac import PolicyPack, validate_infrastructure
from devkit.operations.log_schemas import verify_log_schemas
from devkit.operations.rollout import rollout_guard
from devkit.operations.smoke import (
    SmokeTarget,
    check_deployment_readiness,
    perform_health_check,
    smoke_services,
)
from devkit.utils.exec import CommandResult


class TestSmoke:
    """Tests for HTTP smoke and health checks."""

    def test_target_from_camel_case(self) -> None:
        """Test targets accept camelCase keys."""
        target = SmokeTarget.from_dict(
            {"name": "api", "url": "http://api/health", "expectedStatus": 204, "timeoutMs": 100}
        )

        assert (target.expected_status, target.timeout_ms) == (204, 100)

    def test_smoke_results(self) -> None:
        """Test matching, mismatching and unreachable targets."""
        targets = [
            SmokeTarget("api", "http://api/health"),
            SmokeTarget("web", "http://web/"),
            SmokeTarget("db", "http://db/"),
        ]
        with patch(
            "devkit.operations.smoke.fetch_status",
            side_effect=[200, 503, urllib.error.URLError("connection refused")],
        ):
            results = smoke_services(targets)

        assert [(r.status, r.ok) for r in results] == [(200, True), (503, False), (0, False)]
        assert results[2].error == "connection refused"
        assert "error" not in results[0].to_dict()

    def test_health_check_succeeds_after_retry(self) -> None:
        """Test a connection error is retried after a backoff."""
        with (
            patch(
                "devkit.operations.smoke.fetch_status",
                side_effect=[OSError("refused"), 200],
            ),
            patch("devkit.operations.smoke.time.sleep") as mock_sleep,
        ):
            assert perform_health_check("http://api/health") is True

        mock_sleep.assert_called_once_with(1)

    def test_health_check_wrong_status(self) -> None:
        """Test unexpected statuses exhaust the retries without sleeping."""
        with (
            patch("devkit.operations.smoke.fetch_status", return_value=500) as mock_fetch,
            patch("devkit.operations.smoke.time.sleep") as mock_sleep,
        ):
            assert perform_health_check("http://api/health", retries=2) is False

        assert mock_fetch.call_count == 2
        mock_sleep.assert_not_called()

    def test_readiness(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test missing variables make the environment unhealthy."""
        monkeypatch.setenv("VERSION", "2.0.0")
        monkeypatch.delenv("DEVKIT_DB_URL", raising=False)

        status = check_deployment_readiness("staging", required_env=["DEVKIT_DB_URL"])

        assert not status.healthy
        assert status.version == "2.0.0"
        assert status.to_dict()["checks"][0]["message"] == "Missing: DEVKIT_DB_URL"

    def test_readiness_invalid_environment(self) -> None:
        """Test an unknown environment is rejected."""
        with pytest.raises(ValueError, match="Invalid environment"):
            check_deployment_readiness("qa")


class TestRolloutGuard:
    """Tests for the rollout gate."""

    def test_allows(self) -> None:
        """Test a healthy state allows the rollout."""
        result = rollout_guard(0.4, minimum_approvals=2, approvals_collected=2)

        assert result.allow
        assert result.reasons == []

    def test_blocks_with_every_reason(self) -> None:
        """Test each blocking condition adds its reason."""
        result = rollout_guard(
            0,
            incidents_open=["INC-1", "INC-2"],
            change_freeze=True,
            minimum_approvals=2,
            approvals_collected=1,
        )

        assert not result.allow
        assert result.reasons == [
            "Error budget exhausted.",
            "Org-wide change freeze is active.",
            "Open incidents detected: INC-1, INC-2",
            "Insufficient rollout approvals (1/2).",
        ]


class TestLogSchemas:
    """Tests for log schema verification."""

    def test_missing_directory(self, tmp_path: Path) -> None:
        """Test a missing directory is skipped."""
        report = verify_log_schemas(tmp_path / "schemas")

        assert report.files_checked == 0

    def test_missing_fields(self, tmp_path: Path) -> None:
        """Test schemas without required keys are reported."""
        (tmp_path / "ok.schema.json").write_text(json.dumps({"name": "api", "version": 1}))
        (tmp_path / "bad.schema.json").write_text(json.dumps({"name": "web"}))
        (tmp_path / "broken.schema.json").write_text("{")

        report = verify_log_schemas(tmp_path)

        assert report.files_checked == 3
        messages = sorted(issue.message for issue in report.issues)
        assert messages[0].startswith("Failed to read schema")
        assert messages[1] == 'Missing required field "version".'

    def test_custom_fields(self, tmp_path: Path) -> None:
        """Test custom required fields replace the defaults."""
        (tmp_path / "a.schema.json").write_text(json.dumps({"name": "api", "version": 1}))

        report = verify_log_schemas(tmp_path, required_fields=["owner"])

        assert [issue.message for issue in report.issues] == ['Missing required field "owner".']


class TestEnvBootstrap:
    """Tests for environment scaffolding."""

    @pytest.fixture
    def manifest(self, tmp_path: Path) -> Path:
        """Write a manifest with env, compose and port map sections."""
        path = tmp_path / "env.manifest.json"
        path.write_text(
            json.dumps(
                {
                    "env": [
                        {"name": "DATABASE_URL", "description": "Primary DB"},
                        {"name": "LOG_LEVEL", "defaultValue": "info", "required": False},
                    ],
                    "composeFiles": [
                        {
                            "services": [
                                {
                                    "name": "api",
                                    "image": "acme/api:latest",
                                    "ports": [{"internal": 3000, "external": 8080}],
                                    "dependsOn": ["db"],
                                },
                                {"name": "db", "image": "postgres:16"},
                            ]
                        }
                    ],
                    "portMap": [
                        {"service": "api", "internal": 3000, "external": 9999},
                        {"service": "db", "internal": 5432, "protocol": "tcp"},
                    ],
                }
            )
        )
        return path

    def test_writes_all_files(self, manifest: Path) -> None:
        """Test .env.example, compose file and port map are generated."""
        result = bootstrap_env_from_manifest(manifest)
        base = manifest.parent

        assert result.missing == []
        env_text = (base / ".env.example").read_text()
        assert "# Primary DB\nDATABASE_URL=\n" in env_text
        assert "# optional\nLOG_LEVEL=info\n" in env_text

        compose = yaml.safe_load((base / "docker-compose.yml").read_text())
        assert compose["services"]["api"]["ports"] == ["8080:3000"]
        assert compose["services"]["api"]["depends_on"] == ["db"]

        ports = json.loads((base / "ports.map.json").read_text())["ports"]
        assert ports == [
            {"service": "api", "internal": 3000, "external": 8080},
            {"service": "db", "internal": 5432, "protocol": "tcp"},
        ]

    def test_existing_files_kept(self, manifest: Path) -> None:
        """Test existing outputs are not overwritten by default."""
        env_example = manifest.parent / ".env.example"
        env_example.write_text("KEEP=1\n")

        bootstrap_env_from_manifest(manifest)

        assert env_example.read_text() == "KEEP=1\n"

    def test_missing_sections(self, tmp_path: Path) -> None:
        """Test absent sections are reported."""
        path = tmp_path / "manifest.json"
        path.write_text("{}")

        result = bootstrap_env_from_manifest(path)

        assert result.missing == ["env", "composeFiles", "portMap"]

    def test_invalid_manifest(self, tmp_path: Path) -> None:
        """Test a malformed manifest raises FileError."""
        path = tmp_path / "manifest.json"
        path.write_text("{")

        with pytest.raises(FileError, match="Failed to parse manifest"):
            bootstrap_env_from_manifest(path)

    def test_port_protocol_validation(self) -> None:
        """Test unknown protocols are rejected and mappings rendered."""
        with pytest.raises(ValueError, match="Invalid protocol"):
            PortMapEntry("api", 3000, protocol="sctp")

        assert PortMapEntry("dns", 53, protocol="udp").mapping == "53:53/udp"

    def test_merge_prefers_compose(self) -> None:
        """Test compose-derived entries win over manifest duplicates."""
        merged = merge_ports([PortMapEntry("api", 3000, 1)], [PortMapEntry("api", 3000, 2)])

        assert [entry.external for entry in merged] == [2]


class TestIaC:
    """Tests for infrastructure validation."""

    def test_policy_pack_engine(self) -> None:
        """Test unsupported policy engines are rejected."""
        with pytest.raises(ValueError, match="Invalid policy engine"):
            PolicyPack(engine="sentinel", policies=[], targets=[])

    def test_policy_pack_args(self) -> None:
        """Test conftest and OPA command lines."""
        conftest = PolicyPack("conftest", ["policy/"], ["main.tf"], args=["--all-namespaces"])
        opa = PolicyPack("opa", ["deny.rego"], ["plan.json"])

        assert conftest.command_args("main.tf") == [
            "test",
            "main.tf",
            "-p",
            "policy/",
            "--all-namespaces",
        ]
        assert opa.command_args("plan.json")[-3:] == [
            "--input",
            "plan.json",
            "data.main.deny == []",
        ]

    def test_terraform_init_then_validate(self, tmp_path: Path) -> None:
        """Test terraform runs init and validate in the module directory."""
        with patch(
            "devkit.operations.iac.run_command", return_value=CommandResult(0)
        ) as mock_run:
            report = validate_infrastructure(terraform_dirs=["infra"], cwd=tmp_path)

        assert report.ok
        assert [c.args[1][0] for c in mock_run.call_args_list] == ["init", "validate"]
        assert mock_run.call_args.kwargs["cwd"] == tmp_path / "infra"

    def test_fail_fast_per_category(self, tmp_path: Path) -> None:
        """Test fail_fast stops a category but later categories still run."""
        with (
            patch(
                "devkit.operations.iac.run_command", return_value=CommandResult(1, "", "bad")
            ),
            patch(
                "devkit.operations.iac.run_with_npx_fallback", return_value=CommandResult(0)
            ),
        ):
            report = validate_infrastructure(
                terraform_dirs=["a", "b"],
                cloudformation_templates=["stack.yaml"],
                cwd=tmp_path,
                fail_fast=True,
            )

        assert len(report.terraform) == 1
        assert report.cloudformation[0].ok
        assert not report.ok

    def test_cloudformation_template_path(self, tmp_path: Path) -> None:
        """Test relative templates are resolved against cwd."""
        with patch(
            "devkit.operations.iac.run_with_npx_fallback", return_value=CommandResult(0)
        ) as mock_run:
            validate_infrastructure(cloudformation_templates=["stack.yaml"], cwd=tmp_path)

        assert mock_run.call_args.args[1][-1] == f"file://{tmp_path / 'stack.yaml'}"
        assert mock_run.call_args.args[2] == "aws-cli"
