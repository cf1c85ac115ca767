"""devkit configuration system.

Configuration is YAML-based; command-line options override individual
values per run. Supports environment variable substitution (${VAR}).

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.devkit/config.yaml
3. ./devkit.yaml

A missing file is not an error: every section has working defaults.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# =============================================================================
# Configuration Dataclasses
# =============================================================================

SECRET_SCANNERS = {"gitleaks", "trufflehog"}
SBOM_TOOLS = {"syft", "cyclonedx"}
SBOM_FORMATS = {"cyclonedx-json", "cyclonedx-xml", "spdx-json"}
SIGNING_TOOLS = {"cosign", "gpg"}
SEVERITIES = ("info", "low", "moderate", "high", "critical")

DEFAULT_ALLOWED_LICENSES = [
    "MIT",
    "Apache-2.0",
    "BSD-2-Clause",
    "BSD-3-Clause",
    "ISC",
    "0BSD",
    "CC0-1.0",
    "Unlicense",
]
DEFAULT_BLOCKED_LICENSES = ["GPL-3.0", "GPL-2.0", "AGPL-3.0", "LGPL-3.0", "LGPL-2.1"]
DEFAULT_REVIEW_LICENSES = ["CC-BY-4.0", "CC-BY-SA-4.0"]


@dataclass
class ToolConfig:
    """Tool selection configuration.

    Attributes:
        secret_scanner: Secret scanner (gitleaks, trufflehog)
        sbom: SBOM generator (syft, cyclonedx)
        sbom_format: SBOM output format
        signer: Artifact signing tool (cosign, gpg)
    """

    secret_scanner: str = "gitleaks"
    sbom: str = "syft"
    sbom_format: str = "cyclonedx-json"
    signer: str = "cosign"

    def __post_init__(self) -> None:
        """Validate tool selection."""
        if self.secret_scanner not in SECRET_SCANNERS:
            raise ValueError(
                f"Invalid secret scanner: {self.secret_scanner}. Valid: {SECRET_SCANNERS}"
            )
        if self.sbom not in SBOM_TOOLS:
            raise ValueError(f"Invalid SBOM tool: {self.sbom}. Valid: {SBOM_TOOLS}")
        if self.sbom_format not in SBOM_FORMATS:
            raise ValueError(f"Invalid SBOM format: {self.sbom_format}. Valid: {SBOM_FORMATS}")
        if self.signer not in SIGNING_TOOLS:
            raise ValueError(f"Invalid signing tool: {self.signer}. Valid: {SIGNING_TOOLS}")


@dataclass
class LicenseConfig:
    """License policy for workspace and dependency checks.

    Attributes:
        allowed: SPDX identifiers that are always acceptable
        blocked: SPDX identifiers that fail the check
        warnings: Identifiers that need manual review
        exemptions: Package name -> reason for skipping the check
        ignore_packages: Workspace packages excluded from enforcement
    """

    allowed: list[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_LICENSES))
    blocked: list[str] = field(default_factory=lambda: list(DEFAULT_BLOCKED_LICENSES))
    warnings: list[str] = field(default_factory=lambda: list(DEFAULT_REVIEW_LICENSES))
    exemptions: dict[str, str] = field(default_factory=dict)
    ignore_packages: list[str] = field(default_factory=list)


@dataclass
class VulnerabilityConfig:
    """Dependency audit thresholds.

    Attributes:
        severity_threshold: Lowest severity reported by audits
        max_critical: Critical vulnerabilities tolerated by the policy
        max_high: High vulnerabilities tolerated by the policy
        include_dev: Audit devDependencies as well
    """

    severity_threshold: str = "low"
    max_critical: int = 0
    max_high: int = 2
    include_dev: bool = False

    def __post_init__(self) -> None:
        """Validate audit thresholds."""
        if self.severity_threshold not in SEVERITIES:
            raise ValueError(
                f"Invalid severity threshold: {self.severity_threshold}. Valid: {set(SEVERITIES)}"
            )
        if self.max_critical < 0 or self.max_high < 0:
            raise ValueError("Vulnerability thresholds cannot be negative")


@dataclass
class ReleaseConfig:
    """Release and publish settings.

    Attributes:
        publish_commands: Commands that must pass before publishing
        tag_prefix: Prefix of version tags (e.g. "v")
        registry: npm registry URL (None means the npm default)
    """

    publish_commands: list[str] = field(
        default_factory=lambda: ["pnpm lint", "pnpm test", "pnpm build"]
    )
    tag_prefix: str = ""
    registry: str | None = None


@dataclass
class SharedConfigNames:
    """Names of the organisation's shared tooling packages.

    Attributes:
        config_package: Package with shared tsconfig/eslint presets
        lint_package: Package with the shared ESLint configuration
        scripts_package: Package hosting these scripts (skipped in checks)
    """

    config_package: str = "@kitiumai/config"
    lint_package: str = "@kitiumai/lint"
    scripts_package: str = "@kitiumai/scripts"


@dataclass
class CIConfig:
    """CI/CD-specific configuration.

    Attributes:
        json_output: Use JSON output format
    """

    json_output: bool = False


@dataclass
class DevkitConfig:
    """Top-level devkit configuration.

    Attributes:
        tools: Tool selection
        licenses: License policy
        vulnerabilities: Audit thresholds
        release: Release settings
        shared_configs: Shared tooling package names
        ci: CI/CD settings
    """

    tools: ToolConfig = field(default_factory=ToolConfig)
    licenses: LicenseConfig = field(default_factory=LicenseConfig)
    vulnerabilities: VulnerabilityConfig = field(default_factory=VulnerabilityConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    shared_configs: SharedConfigNames = field(default_factory=SharedConfigNames)
    ci: CIConfig = field(default_factory=CIConfig)

    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path


# =============================================================================
# Environment Variable Substitution
# =============================================================================


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax, e.g. ``registry: ${NPM_REGISTRY}``.

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted
    """
    if isinstance(value, str):
        pattern = re.compile(r"\$\{([^}]+)\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return pattern.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".devkit" / "config.yaml",
        start_path / "devkit.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    return section


def load_config_from_dict(data: dict[str, Any]) -> DevkitConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        DevkitConfig instance
    """
    data = substitute_env_vars(data)

    config = DevkitConfig()

    if "tools" in data:
        tools_data = _section(data, "tools")
        config.tools = ToolConfig(
            secret_scanner=tools_data.get("secret_scanner", config.tools.secret_scanner),
            sbom=tools_data.get("sbom", config.tools.sbom),
            sbom_format=tools_data.get("sbom_format", config.tools.sbom_format),
            signer=tools_data.get("signer", config.tools.signer),
        )

    if "licenses" in data:
        license_data = _section(data, "licenses")
        defaults = LicenseConfig()
        config.licenses = LicenseConfig(
            allowed=license_data.get("allowed", defaults.allowed),
            blocked=license_data.get("blocked", defaults.blocked),
            warnings=license_data.get("warnings", defaults.warnings),
            exemptions=license_data.get("exemptions", defaults.exemptions),
            ignore_packages=license_data.get("ignore_packages", defaults.ignore_packages),
        )

    if "vulnerabilities" in data:
        vuln_data = _section(data, "vulnerabilities")
        config.vulnerabilities = VulnerabilityConfig(
            severity_threshold=vuln_data.get("severity_threshold", "low"),
            max_critical=vuln_data.get("max_critical", 0),
            max_high=vuln_data.get("max_high", 2),
            include_dev=vuln_data.get("include_dev", False),
        )

    if "release" in data:
        release_data = _section(data, "release")
        config.release = ReleaseConfig(
            publish_commands=release_data.get(
                "publish_commands", config.release.publish_commands
            ),
            tag_prefix=release_data.get("tag_prefix", ""),
            registry=release_data.get("registry"),
        )

    if "shared_configs" in data:
        shared_data = _section(data, "shared_configs")
        defaults_shared = SharedConfigNames()
        config.shared_configs = SharedConfigNames(
            config_package=shared_data.get("config_package", defaults_shared.config_package),
            lint_package=shared_data.get("lint_package", defaults_shared.lint_package),
            scripts_package=shared_data.get("scripts_package", defaults_shared.scripts_package),
        )

    if "ci" in data:
        ci_data = _section(data, "ci")
        config.ci = CIConfig(
            json_output=ci_data.get("json_output", False),
        )

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> DevkitConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        DevkitConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is not None:
        with open(found_path) as f:
            data = yaml.safe_load(f) or {}
        config = load_config_from_dict(data)
        config._config_path = found_path
    else:
        config = DevkitConfig()

    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return '''# devkit configuration

# External tool selection
tools:
  secret_scanner: "gitleaks"     # gitleaks, trufflehog
  sbom: "syft"                   # syft, cyclonedx
  sbom_format: "cyclonedx-json"  # cyclonedx-json, cyclonedx-xml, spdx-json
  signer: "cosign"               # cosign, gpg

# License policy applied to workspace packages and dependencies
licenses:
  allowed:
    ["MIT", "Apache-2.0", "BSD-2-Clause", "BSD-3-Clause", "ISC", "0BSD", "CC0-1.0", "Unlicense"]
  blocked: ["GPL-3.0", "GPL-2.0", "AGPL-3.0", "LGPL-3.0", "LGPL-2.1"]
  warnings: ["CC-BY-4.0", "CC-BY-SA-4.0"]
  # exemptions:
  #   some-package: "Approved by legal"
  # ignore_packages: ["@acme/internal-tool"]

# Dependency audit thresholds
vulnerabilities:
  severity_threshold: "low"  # info, low, moderate, high, critical
  max_critical: 0
  max_high: 2
  include_dev: false

# Release settings
release:
  publish_commands: ["pnpm lint", "pnpm test", "pnpm build"]
  tag_prefix: ""
  # registry: "${NPM_REGISTRY}"

# Shared tooling packages checked by `devkit dx`
shared_configs:
  config_package: "@kitiumai/config"
  lint_package: "@kitiumai/lint"
  scripts_package: "@kitiumai/scripts"

# CI/CD settings
ci:
  json_output: false
'''
