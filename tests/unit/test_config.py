"""Unit tests for configuration system."""

from pathlib import Path

import pytest
import yaml

from devkit.config import (
    DevkitConfig,
    ToolConfig,
    VulnerabilityConfig,
    create_default_config,
    find_config_file,
    load_config,
    load_config_from_dict,
    substitute_env_vars,
)
from devkit.security.compliance import CompliancePolicy


class TestSubstituteEnvVars:
    """Tests for environment variable substitution."""

    def test_substitute_string(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substituting env var in string."""
        monkeypatch.setenv("TEST_VAR", "test_value")

        result = substitute_env_vars("prefix_${TEST_VAR}_suffix")

        assert result == "prefix_test_value_suffix"

    def test_substitute_nested(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substituting env vars inside dicts and lists."""
        monkeypatch.setenv("REGISTRY", "https://npm.acme.dev/")

        data = {"release": {"registry": "${REGISTRY}"}, "list": ["static", "${REGISTRY}"]}
        result = substitute_env_vars(data)

        assert result["release"]["registry"] == "https://npm.acme.dev/"
        assert result["list"] == ["static", "https://npm.acme.dev/"]

    def test_missing_env_var_raises(self) -> None:
        """Test that missing env var raises ValueError."""
        with pytest.raises(ValueError, match="Environment variable not set"):
            substitute_env_vars("${DEVKIT_NONEXISTENT_VAR}")

    def test_passthrough_non_string(self) -> None:
        """Test that non-string values pass through unchanged."""
        assert substitute_env_vars(42) == 42
        assert substitute_env_vars(None) is None


class TestToolConfig:
    """Tests for tool selection validation."""

    def test_defaults(self) -> None:
        """Test default tool selection."""
        tools = ToolConfig()

        assert (tools.secret_scanner, tools.sbom, tools.signer) == ("gitleaks", "syft", "cosign")

    def test_invalid_scanner(self) -> None:
        """Test that an unknown scanner is rejected."""
        with pytest.raises(ValueError, match="Invalid secret scanner"):
            ToolConfig(secret_scanner="detect-secrets")

    def test_invalid_sbom_format(self) -> None:
        """Test that an unknown SBOM format is rejected."""
        with pytest.raises(ValueError, match="Invalid SBOM format"):
            ToolConfig(sbom_format="spdx-tag-value")

    def test_invalid_severity(self) -> None:
        """Test that an unknown severity threshold is rejected."""
        with pytest.raises(ValueError, match="Invalid severity threshold"):
            VulnerabilityConfig(severity_threshold="urgent")


class TestLoadConfigFromDict:
    """Tests for building config from parsed YAML."""

    def test_empty_dict_gives_defaults(self) -> None:
        """Test an empty document yields the default config."""
        config = load_config_from_dict({})

        assert config == DevkitConfig()

    def test_license_defaults_match_compliance_policy(self) -> None:
        """Test every license command starts from the same default policy."""
        licenses = DevkitConfig().licenses
        policy = CompliancePolicy()

        assert licenses.allowed == policy.allowlist
        assert licenses.blocked == policy.blocklist
        assert licenses.warnings == policy.warnings
        assert "0BSD" in licenses.allowed

    def test_sections_override_defaults(self) -> None:
        """Test each section replaces its defaults."""
        config = load_config_from_dict(
            {
                "tools": {"secret_scanner": "trufflehog", "signer": "gpg"},
                "licenses": {"allowed": ["MIT"], "exemptions": {"left-pad": "legal ok"}},
                "vulnerabilities": {"severity_threshold": "high", "max_high": 0},
                "release": {"tag_prefix": "v", "publish_commands": ["pnpm test"]},
                "shared_configs": {"config_package": "@acme/config"},
                "ci": {"json_output": True},
            }
        )

        assert config.tools.secret_scanner == "trufflehog"
        assert config.tools.sbom == "syft"
        assert config.licenses.allowed == ["MIT"]
        assert config.licenses.exemptions == {"left-pad": "legal ok"}
        assert config.vulnerabilities.max_high == 0
        assert config.release.tag_prefix == "v"
        assert config.release.publish_commands == ["pnpm test"]
        assert config.shared_configs.config_package == "@acme/config"
        assert config.shared_configs.lint_package == "@kitiumai/lint"
        assert config.ci.json_output is True

    def test_non_mapping_section_rejected(self) -> None:
        """Test a section that is not a mapping raises ValueError."""
        with pytest.raises(ValueError, match="must be a mapping"):
            load_config_from_dict({"tools": ["gitleaks"]})


class TestConfigFiles:
    """Tests for config discovery and loading."""

    def test_find_config_file_prefers_devkit_dir(self, tmp_path: Path) -> None:
        """Test .devkit/config.yaml wins over devkit.yaml."""
        (tmp_path / ".devkit").mkdir()
        (tmp_path / ".devkit" / "config.yaml").write_text("{}")
        (tmp_path / "devkit.yaml").write_text("{}")

        assert find_config_file(tmp_path) == tmp_path.resolve() / ".devkit" / "config.yaml"

    def test_find_config_file_none(self, tmp_path: Path) -> None:
        """Test no config file yields None."""
        assert find_config_file(tmp_path) is None

    def test_load_explicit_path(self, tmp_path: Path) -> None:
        """Test an explicit file is loaded and remembered."""
        path = tmp_path / "devkit.yaml"
        path.write_text("tools:\n  sbom: cyclonedx\n")

        config = load_config(config_path=path)

        assert config.tools.sbom == "cyclonedx"
        assert config.config_path == path

    def test_load_missing_path_raises(self, tmp_path: Path) -> None:
        """Test a missing explicit path raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "missing.yaml")

    def test_default_config_round_trips(self) -> None:
        """Test the generated default YAML loads into the default config."""
        data = yaml.safe_load(create_default_config())

        assert load_config_from_dict(data) == DevkitConfig()
