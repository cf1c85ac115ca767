"""npm workspace helpers: registry auth, .npmrc templates, changesets.

Also hosts the package-manager detection shared by the dependency and
audit commands.
"""

import os
import shutil
from pathlib import Path
from urllib.parse import urlparse

from devkit.errors import ConfigError, FileError
from devkit.utils.exec import run_command
from devkit.utils.files import find_upwards, write_json
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_REGISTRY = "https://registry.npmjs.org/"
NPMRC_TEMPLATE = ".npmrc-package-template"

DEFAULT_CHANGESET_CONFIG = {
    "$schema": "https://unpkg.com/@changesets/config@2.3.1/schema.json",
    "changelog": "@changesets/cli/changelog",
    "commit": False,
    "fixed": [],
    "linked": [],
    "access": "public",
    "baseBranch": "main",
    "updateInternalDependencies": "patch",
    "ignore": [],
}


# =============================================================================
# Package discovery
# =============================================================================


def find_package_json(start: str | Path | None = None, max_levels: int = 10) -> Path | None:
    """Nearest package.json in start or its parents."""
    return find_upwards(start or Path.cwd(), "package.json", max_levels)


def get_package_manager(package_path: str | Path) -> str:
    """Detect the package manager from lock files next to a package.json.

    Args:
        package_path: Path to package.json or its directory

    Returns:
        "pnpm", "yarn" or "npm"
    """
    path = Path(package_path)
    directory = path.parent if path.name == "package.json" else path

    if (directory / "pnpm-lock.yaml").exists():
        return "pnpm"
    if (directory / "yarn.lock").exists():
        return "yarn"
    if (directory / "package-lock.json").exists():
        return "npm"
    if (directory.parent / "pnpm-workspace.yaml").exists():
        return "pnpm"
    return "npm"


# =============================================================================
# Registry authentication
# =============================================================================


def auth_key(registry: str = DEFAULT_REGISTRY) -> str:
    """The .npmrc key holding the auth token for a registry."""
    return f"//{urlparse(registry).netloc}/:_authToken"


def npm_whoami(registry: str = DEFAULT_REGISTRY) -> str | None:
    """Logged-in npm user for a registry, or None."""
    result = run_command("npm", ["whoami", "--registry", registry.rstrip("/")], check=False)
    username = result.stdout.strip()
    return username if result.ok and username else None


def update_npmrc(npmrc_path: Path, registry: str, token: str) -> None:
    """Replace the registry's auth line in an .npmrc, keeping other settings."""
    key = auth_key(registry)
    content = npmrc_path.read_text(encoding="utf-8") if npmrc_path.exists() else ""
    lines = [line for line in content.splitlines() if key not in line]
    lines.append(f"{key}={token}")
    npmrc_path.write_text("\n".join(lines).strip() + "\n", encoding="utf-8")


def set_npm_token(
    token: str | None = None,
    registry: str = DEFAULT_REGISTRY,
    local: bool = False,
    verify: bool = True,
    skip_if_logged_in: bool = False,
    cwd: str | Path | None = None,
    home: str | Path | None = None,
) -> Path | None:
    """Store an npm auth token in .npmrc.

    Args:
        token: Auth token (default: NPM_TOKEN environment variable)
        registry: Registry URL the token belongs to
        local: Write the project .npmrc instead of the user-level one
        verify: Run ``npm whoami`` afterwards
        skip_if_logged_in: Leave .npmrc alone when ``npm whoami`` already succeeds
        cwd: Project directory (default: current directory)
        home: Home directory (default: the user's home)

    Returns:
        Path of the updated .npmrc, or None when already logged in

    Raises:
        ConfigError: If no token was given and NPM_TOKEN is unset
    """
    if skip_if_logged_in:
        username = npm_whoami(registry)
        if username:
            logger.success(f"Already logged in as {username} on {registry}")
            return None
        logger.info("Not logged in on %s, setting token", registry)

    npm_token = token or os.environ.get("NPM_TOKEN")
    if not npm_token:
        raise ConfigError("NPM_TOKEN is required", config_key="NPM_TOKEN")

    if local:
        base = Path(cwd or Path.cwd())
    else:
        base = Path(home or Path.home())
    npmrc_path = base / ".npmrc"
    logger.info("Setting token for registry %s in %s", registry, npmrc_path)

    try:
        update_npmrc(npmrc_path, registry, npm_token)
    except OSError as e:
        raise FileError(f"Could not update {npmrc_path}: {e}", str(npmrc_path), "write") from e
    logger.success(f"Updated {npmrc_path} with authentication token")

    if verify:
        username = npm_whoami(registry)
        if username:
            logger.success(f"Authentication verified! Logged in as: {username}")
        else:
            logger.warning("Could not verify authentication. Please run: npm whoami")

    return npmrc_path


def add_npmrc(cwd: str | Path | None = None, force: bool = False) -> Path | None:
    """Copy the monorepo's .npmrc template into a package.

    The template (``.npmrc-package-template``) is searched for in the
    package directory and up to 19 of its parents.

    Returns:
        Path of the written .npmrc, or None if it already existed

    Raises:
        FileError: If there is no package.json or no template
    """
    current = Path(cwd or Path.cwd()).resolve()
    npmrc_path = current / ".npmrc"

    if not (current / "package.json").exists():
        raise FileError(
            "No package.json found in current directory", str(current / "package.json"), "access"
        )

    if npmrc_path.exists() and not force:
        logger.warning(".npmrc already exists. Use --force to overwrite.")
        return None

    template = find_upwards(current, NPMRC_TEMPLATE, max_levels=20)
    if template is None:
        raise FileError(
            f"Could not find {NPMRC_TEMPLATE} in parent directories", str(current), "access"
        )

    try:
        shutil.copyfile(template, npmrc_path)
    except OSError as e:
        raise FileError(f"Could not copy .npmrc template: {e}", str(template), "read") from e

    relative = os.path.relpath(current, template.parent)
    logger.success(f".npmrc configured for: {relative}")
    return npmrc_path


# =============================================================================
# Changesets
# =============================================================================


def ensure_changeset_config(cwd: str | Path | None = None, force: bool = False) -> bool:
    """Create .changeset/config.json with the default changesets settings.

    Returns:
        True if the config file was written
    """
    changeset_dir = Path(cwd or Path.cwd()) / ".changeset"
    config_path = changeset_dir / "config.json"

    if not changeset_dir.exists():
        changeset_dir.mkdir(parents=True)
        logger.success("Created .changeset directory")

    exists = config_path.exists()
    if exists and not force:
        logger.info(".changeset/config.json already exists")
        return False

    write_json(config_path, DEFAULT_CHANGESET_CONFIG)
    logger.success(
        "Overwrote .changeset/config.json" if exists else "Created .changeset/config.json"
    )
    return True
