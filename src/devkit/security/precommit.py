"""Pre-commit secret scanning and git hook installation."""

import os
from pathlib import Path

from devkit.errors import ScriptError
from devkit.templates import render_template
from devkit.tools.registry import get_registry
from devkit.tools.secrets import SecretScanResult
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

HOOKS = {"pre-commit", "pre-push"}


def run_precommit_secret_scan(
    scanner: str = "gitleaks",
    config_path: str | None = None,
    cwd: str | Path | None = None,
    include_untracked: bool = False,
    extra_args: list[str] | None = None,
) -> SecretScanResult:
    """Scan staged changes for secrets.

    Raises:
        ScriptError: If the scanner reports any finding
    """
    adapter = get_registry().get_secret_scanner(scanner)
    base = Path(cwd or Path.cwd())
    result = adapter.execute(
        base,
        config_path=config_path,
        cwd=base,
        extra_args=extra_args,
        staged=True,
        include_untracked=include_untracked,
    )

    if result.findings:
        logger.warning(
            "%s pre-commit scan found %d potential secret(s).", scanner, len(result.findings)
        )
        raise ScriptError(
            "Secret scan failed. Review findings before committing.", code="SECRETS_FOUND"
        )

    logger.success(f"{scanner} pre-commit scan clean.")
    return result


def install_secret_scan_hook(
    hook: str = "pre-commit",
    scanner: str = "gitleaks",
    config_path: str | None = None,
    include_untracked: bool = False,
    extra_args: list[str] | None = None,
    cwd: str | Path | None = None,
    hook_dir: str | Path | None = None,
) -> Path:
    """Write an executable git hook that runs the secret scanner.

    The hook falls back to ``npx --yes <scanner>@latest`` when the scanner
    is not on PATH.

    Returns:
        Path of the installed hook
    """
    if hook not in HOOKS:
        raise ValueError(f"Invalid hook: {hook}. Valid: {HOOKS}")

    adapter = get_registry().get_secret_scanner(scanner)
    args = adapter.staged_args(config_path, include_untracked) + list(extra_args or [])

    directory = Path(hook_dir) if hook_dir else Path(cwd or Path.cwd()) / ".git" / "hooks"
    directory.mkdir(parents=True, exist_ok=True)
    hook_path = directory / hook

    hook_path.write_text(render_template("git_hook.sh.j2", scanner=scanner, args=args))
    os.chmod(hook_path, 0o755)

    logger.success(f"Installed {hook} hook for {scanner} secret scanning at {hook_path}")
    return hook_path
