"""Unit tests for npm workspace helpers."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from devkit.errors import ConfigError, FileError
from devkit.npm import (
    DEFAULT_CHANGESET_CONFIG,
    add_npmrc,
    auth_key,
    ensure_changeset_config,
    find_package_json,
    get_package_manager,
    set_npm_token,
)
from devkit.utils.exec import CommandResult


class TestPackageDiscovery:
    """Tests for package.json and package manager detection."""

    def test_find_package_json_in_parent(self, package_dir: Path) -> None:
        """Test the nearest package.json above a source folder is found."""
        src = package_dir / "src"
        src.mkdir()

        assert find_package_json(src) == (package_dir / "package.json").resolve()

    @pytest.mark.parametrize(
        ("lock_file", "expected"),
        [("pnpm-lock.yaml", "pnpm"), ("yarn.lock", "yarn"), ("package-lock.json", "npm")],
    )
    def test_lock_files(self, package_dir: Path, lock_file: str, expected: str) -> None:
        """Test each lock file selects its package manager."""
        (package_dir / lock_file).write_text("")

        assert get_package_manager(package_dir / "package.json") == expected

    def test_workspace_parent_means_pnpm(self, monorepo: Path) -> None:
        """Test a package under a pnpm workspace root is treated as pnpm."""
        (monorepo / "apps").mkdir()
        (monorepo / "apps" / "pnpm-workspace.yaml").write_text("")
        package = monorepo / "apps" / "site"
        package.mkdir()

        assert get_package_manager(package) == "pnpm"

    def test_default_is_npm(self, package_dir: Path) -> None:
        """Test no lock file falls back to npm."""
        assert get_package_manager(package_dir) == "npm"


class TestSetNpmToken:
    """Tests for storing registry tokens."""

    def test_auth_key(self) -> None:
        """Test the .npmrc key uses the registry host."""
        assert auth_key("https://npm.acme.dev/") == "//npm.acme.dev/:_authToken"

    def test_requires_token(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test no argument and no NPM_TOKEN raises ConfigError."""
        monkeypatch.delenv("NPM_TOKEN", raising=False)

        with pytest.raises(ConfigError, match="NPM_TOKEN is required"):
            set_npm_token(home=tmp_path, verify=False)

    def test_reads_env_token(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test NPM_TOKEN is written to the user .npmrc."""
        monkeypatch.setenv("NPM_TOKEN", "npm_env")

        path = set_npm_token(home=tmp_path, verify=False)

        assert path == tmp_path / ".npmrc"
        assert path.read_text() == "//registry.npmjs.org/:_authToken=npm_env\n"

    def test_replaces_existing_line(self, tmp_path: Path) -> None:
        """Test an old token for the registry is replaced and other lines kept."""
        npmrc = tmp_path / ".npmrc"
        npmrc.write_text("save-exact=true\n//registry.npmjs.org/:_authToken=old\n")

        set_npm_token("new", local=True, cwd=tmp_path, verify=False)

        assert npmrc.read_text() == "save-exact=true\n//registry.npmjs.org/:_authToken=new\n"

    def test_verify_runs_whoami(self, tmp_path: Path) -> None:
        """Test verification calls npm whoami against the registry."""
        with patch(
            "devkit.npm.run_command", return_value=CommandResult(0, "octocat\n")
        ) as mock_run:
            set_npm_token("tok", registry="https://npm.acme.dev/", home=tmp_path)

        assert mock_run.call_args.args == (
            "npm",
            ["whoami", "--registry", "https://npm.acme.dev"],
        )

    def test_skip_when_logged_in(self, tmp_path: Path) -> None:
        """Test an existing login leaves .npmrc untouched."""
        with patch(
            "devkit.npm.run_command", return_value=CommandResult(0, "octocat\n")
        ) as mock_run:
            path = set_npm_token("tok", home=tmp_path, skip_if_logged_in=True)

        assert path is None
        assert not (tmp_path / ".npmrc").exists()
        assert mock_run.call_count == 1

    def test_skip_falls_through_when_logged_out(self, tmp_path: Path) -> None:
        """Test a failed whoami still writes the token."""
        with patch(
            "devkit.npm.run_command", return_value=CommandResult(1, "", "E401")
        ):
            path = set_npm_token("tok", home=tmp_path, verify=False, skip_if_logged_in=True)

        assert path == tmp_path / ".npmrc"
        assert path.read_text() == "//registry.npmjs.org/:_authToken=tok\n"


class TestAddNpmrc:
    """Tests for copying the .npmrc template into packages."""

    def test_copies_template(self, monorepo: Path) -> None:
        """Test the template from the repo root is copied into the package."""
        (monorepo / ".npmrc-package-template").write_text("@acme:registry=https://npm.acme.dev/\n")
        package = monorepo / "packages" / "core"

        path = add_npmrc(package)

        assert path == package.resolve() / ".npmrc"
        assert path.read_text().startswith("@acme:registry")

    def test_existing_npmrc_kept(self, package_dir: Path) -> None:
        """Test an existing .npmrc is left alone without force."""
        (package_dir / ".npmrc").write_text("keep")

        assert add_npmrc(package_dir) is None
        assert (package_dir / ".npmrc").read_text() == "keep"

    def test_missing_package_json(self, tmp_path: Path) -> None:
        """Test a directory without package.json raises FileError."""
        with pytest.raises(FileError, match="No package.json"):
            add_npmrc(tmp_path)

    def test_missing_template(self, package_dir: Path) -> None:
        """Test a missing template raises FileError."""
        with pytest.raises(FileError, match="Could not find"):
            add_npmrc(package_dir)


class TestChangesets:
    """Tests for changeset config bootstrap."""

    def test_creates_config(self, tmp_path: Path) -> None:
        """Test the default config is written."""
        assert ensure_changeset_config(tmp_path) is True

        written = json.loads((tmp_path / ".changeset" / "config.json").read_text())
        assert written == DEFAULT_CHANGESET_CONFIG

    def test_existing_config_kept(self, tmp_path: Path) -> None:
        """Test an existing config is not replaced without force."""
        (tmp_path / ".changeset").mkdir()
        (tmp_path / ".changeset" / "config.json").write_text("{}")

        assert ensure_changeset_config(tmp_path) is False
        assert ensure_changeset_config(tmp_path, force=True) is True
