"""Unit tests for secret scanning, audits, license policy and env coverage."""

import json
import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from devkit.errors import FileError, ScriptError, ValidationError
from devkit.security.audit import (
    audit_dependencies,
    pick_json_object,
    severity_at_least,
    summarize_audit,
)
from devkit.security.env_coverage import diff_env_coverage, ensure_env_coverage
from devkit.security.licenses import enforce_license_policy, load_license_policy
from devkit.security.precommit import install_secret_scan_hook, run_precommit_secret_scan
from devkit.security.secrets import scan_secrets
from devkit.utils.exec import CommandResult

FINDING = '[{"RuleID": "aws-access-token", "File": "src/config.ts"}]'


class TestSecretScan:
    """Tests for repository and pre-commit secret scans."""

    def test_clean_scan(self, tmp_path: Path) -> None:
        """Test a scan without findings returns an empty result."""
        with patch("devkit.tools.base.run_with_npx_fallback", return_value=CommandResult(0, "[]")):
            result = scan_secrets(source=tmp_path)

        assert result.scanner == "gitleaks"
        assert result.findings == []

    def test_findings_raise(self, tmp_path: Path) -> None:
        """Test findings raise SECRETS_FOUND by default."""
        with patch(
            "devkit.tools.base.run_with_npx_fallback", return_value=CommandResult(1, FINDING)
        ):
            with pytest.raises(ScriptError) as exc_info:
                scan_secrets(source=tmp_path)

        assert exc_info.value.code == "SECRETS_FOUND"

    def test_findings_returned_without_fail(self, tmp_path: Path) -> None:
        """Test fail_on_finding=False returns the findings."""
        with patch(
            "devkit.tools.base.run_with_npx_fallback", return_value=CommandResult(1, FINDING)
        ):
            result = scan_secrets("trufflehog", source=tmp_path, fail_on_finding=False)

        assert result.scanner == "trufflehog"
        assert len(result.findings) == 1

    def test_precommit_scans_staged(self, tmp_path: Path) -> None:
        """Test the pre-commit scan uses the staged arguments."""
        with patch(
            "devkit.tools.base.run_with_npx_fallback", return_value=CommandResult(0, "")
        ) as mock_run:
            run_precommit_secret_scan(cwd=tmp_path)

        assert "--staged" in mock_run.call_args.args[1]

    def test_precommit_findings_raise(self, tmp_path: Path) -> None:
        """Test staged findings block the commit."""
        with patch(
            "devkit.tools.base.run_with_npx_fallback", return_value=CommandResult(1, FINDING)
        ):
            with pytest.raises(ScriptError, match="Review findings"):
                run_precommit_secret_scan(cwd=tmp_path)


class TestHookInstall:
    """Tests for git hook installation."""

    def test_installs_executable_hook(self, tmp_path: Path) -> None:
        """Test the hook lands in .git/hooks and is executable."""
        hook = install_secret_scan_hook(cwd=tmp_path)

        assert hook == tmp_path / ".git" / "hooks" / "pre-commit"
        assert os.stat(hook).st_mode & stat.S_IXUSR
        assert "gitleaks detect --staged" in hook.read_text()

    def test_invalid_hook(self, tmp_path: Path) -> None:
        """Test an unsupported hook name is rejected."""
        with pytest.raises(ValueError, match="Invalid hook"):
            install_secret_scan_hook(hook="post-merge", cwd=tmp_path)


class TestAudit:
    """Tests for dependency audit parsing."""

    def test_severity_order(self) -> None:
        """Test severities compare by rank and unknown ranks lowest."""
        assert severity_at_least("critical", "high")
        assert not severity_at_least("moderate", "high")
        assert not severity_at_least("weird", "info")

    def test_pick_json_after_banner(self) -> None:
        """Test banner lines before the JSON are skipped."""
        assert pick_json_object('WARN something\n{"advisories": {}}') == {"advisories": {}}
        assert pick_json_object("no json") == {}

    def test_legacy_advisories(self) -> None:
        """Test the npm 6 advisories map is summarised with the threshold."""
        raw = {
            "advisories": {
                "1": {"module_name": "lodash", "severity": "high", "title": "Prototype pollution"},
                "2": {"module_name": "debug", "severity": "low", "title": "ReDoS"},
            }
        }

        summary = summarize_audit(raw, "moderate")

        assert summary.total == 1
        assert summary.advisories[0].module == "lodash"
        assert summary.severity_counts["high"] == 1

    def test_vulnerabilities_map(self) -> None:
        """Test the npm 7+ vulnerabilities map takes details from via."""
        raw = {
            "vulnerabilities": {
                "minimist": {
                    "severity": "critical",
                    "via": [{"title": "Prototype Pollution", "url": "https://gh.sa/1"}],
                },
                "semver": {"severity": "moderate", "via": ["other-package"]},
            }
        }

        summary = summarize_audit(raw)

        assert summary.total == 2
        assert summary.advisories[0].title == "Prototype Pollution"
        assert summary.advisories[1].title is None

    def test_metadata_counts_only(self) -> None:
        """Test bare metadata counts are summed."""
        raw = {"metadata": {"vulnerabilities": {"low": 2, "high": 1, "total": 3}}}

        summary = summarize_audit(raw, "high")

        assert summary.total == 1
        assert summary.advisories == []

    def test_audit_runs_in_package_dir(self, package_dir: Path) -> None:
        """Test npm audit runs production-only in the package directory."""
        output = json.dumps({"metadata": {"vulnerabilities": {"critical": 1}}})
        with patch("devkit.security.audit.run_command", return_value=CommandResult(1, output)) as mock_run:
            summary = audit_dependencies(package_dir)

        assert summary.total == 1
        assert mock_run.call_args.args == ("npm", ["audit", "--json", "--production"])
        assert mock_run.call_args.kwargs["cwd"] == (package_dir / "package.json").resolve().parent

    def test_invalid_threshold(self, package_dir: Path) -> None:
        """Test an unknown threshold is rejected."""
        with pytest.raises(ValueError, match="Invalid severity threshold"):
            audit_dependencies(package_dir, severity_threshold="severe")

    def test_missing_package_json(self, tmp_path: Path) -> None:
        """Test no package.json raises FileError."""
        with patch("devkit.npm.find_upwards", return_value=None):
            with pytest.raises(FileError):
                audit_dependencies(tmp_path)


class TestLicensePolicy:
    """Tests for workspace license enforcement."""

    def test_policy_file_then_overrides(self, tmp_path: Path) -> None:
        """Test explicit arguments beat the policy file."""
        policy_file = tmp_path / "policy.json"
        policy_file.write_text(
            json.dumps({"allowedLicenses": ["MIT"], "ignorePackages": ["acme-root"]})
        )

        policy = load_license_policy(policy_file, blocked=["SSPL-1.0"])

        assert policy.allowed_licenses == ["MIT"]
        assert policy.blocked_licenses == ["SSPL-1.0"]
        assert policy.ignore_packages == ["acme-root"]

    def test_violations(self, monorepo: Path) -> None:
        """Test missing and blocked licenses are both reported."""
        result = enforce_license_policy(monorepo)

        assert not result.passed
        assert len(result.packages) == 3
        assert any("acme-root is missing a license" in v for v in result.violations)
        assert any("@acme/web uses blocked license GPL-3.0" in v for v in result.violations)

    def test_ignored_packages_case_insensitive(self, monorepo: Path) -> None:
        """Test ignored names skip their packages regardless of case."""
        result = enforce_license_policy(monorepo, ignore_packages=["ACME-ROOT", "@acme/web"])

        assert result.passed

    def test_not_allowed(self, monorepo: Path) -> None:
        """Test a license outside the allowlist is reported."""
        result = enforce_license_policy(
            monorepo, allowed=["Apache-2.0"], blocked=[], ignore_packages=["acme-root"]
        )

        assert "@acme/core uses license MIT which is not allowed." in " ".join(result.violations)


class TestEnvCoverage:
    """Tests for environment variable coverage."""

    def test_diff(self) -> None:
        """Test missing, empty and extraneous variables are classified."""
        env = {"API_URL": "https://api", "TOKEN": "", "EXTRA": "1"}

        result = diff_env_coverage(["API_URL", "TOKEN", "DB_URL"], env)

        assert result.missing == ["DB_URL"]
        assert result.empty == ["TOKEN"]
        assert result.extraneous == ["EXTRA"]

    def test_allow_empty(self) -> None:
        """Test allow_empty treats blank values as present."""
        result = diff_env_coverage(["TOKEN"], {"TOKEN": ""}, allow_empty=True)

        assert result.empty == []

    def test_ensure_raises(self) -> None:
        """Test missing variables raise ValidationError naming them."""
        with pytest.raises(ValidationError, match="Missing: DB_URL"):
            ensure_env_coverage(["DB_URL"], {}, verbose=False)

    def test_defaults_to_process_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test os.environ is inspected when no mapping is given."""
        monkeypatch.setenv("DEVKIT_REQUIRED", "yes")

        assert ensure_env_coverage(["DEVKIT_REQUIRED"], verbose=False).missing == []
