"""Shared pytest fixtures for devkit tests.

Fixtures are organized by category:
- Isolation fixtures: reset logging, the tool registry and CLI state
- Command fixtures: fake subprocess results
- Repository fixtures: throwaway monorepos and packages
"""

import json
import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from devkit.utils.exec import CommandResult

# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_devkit_state() -> Iterator[None]:
    """Undo logging setup, registry caching and CLI config between tests."""
    yield

    from devkit import commands
    from devkit.tools import reset_registry

    logger = logging.getLogger("devkit")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    reset_registry()
    commands.set_config(None)


# =============================================================================
# Command Fixtures
# =============================================================================


@pytest.fixture
def make_result() -> Callable[..., CommandResult]:
    """Build CommandResult instances for mocked run_command calls."""

    def _make(code: int = 0, stdout: str = "", stderr: str = "") -> CommandResult:
        return CommandResult(code=code, stdout=stdout, stderr=stderr)

    return _make


# =============================================================================
# Repository Fixtures
# =============================================================================


def write_package(directory: Path, data: dict[str, Any]) -> Path:
    """Write a package.json into directory and return its path."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "package.json"
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def package_dir(tmp_path: Path) -> Path:
    """A single package with a package.json."""
    write_package(tmp_path, {"name": "@acme/app", "version": "1.2.3", "license": "MIT"})
    return tmp_path


@pytest.fixture
def monorepo(tmp_path: Path) -> Path:
    """A pnpm-style monorepo with two packages.

    packages/core follows the shared presets; packages/web does not.
    """
    (tmp_path / "pnpm-workspace.yaml").write_text("packages:\n  - packages/*\n")
    write_package(tmp_path, {"name": "acme-root", "private": True})

    core = tmp_path / "packages" / "core"
    write_package(
        core,
        {
            "name": "@acme/core",
            "version": "1.0.0",
            "license": "MIT",
            "devDependencies": {"@kitiumai/config": "^1.0.0", "@kitiumai/lint": "^1.0.0"},
        },
    )
    (core / "tsconfig.json").write_text(
        json.dumps({"extends": "@kitiumai/config/tsconfig.base.json"})
    )
    (core / "eslint.config.js").write_text(
        "import base from '@kitiumai/lint';\n"
        "import { paths } from '@kitiumai/config/paths';\n"
        "export default [...base];\n"
    )

    write_package(
        tmp_path / "packages" / "web",
        {"name": "@acme/web", "version": "0.1.0", "license": "GPL-3.0"},
    )
    return tmp_path
