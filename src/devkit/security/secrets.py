"""Repository secret scanning."""

from pathlib import Path

from devkit.errors import ScriptError
from devkit.tools.registry import get_registry
from devkit.tools.secrets import SecretScanResult
from devkit.utils.logging import get_logger

logger = get_logger(__name__)


def scan_secrets(
    scanner: str = "gitleaks",
    source: str | Path | None = None,
    config_path: str | None = None,
    cwd: str | Path | None = None,
    fail_on_finding: bool = True,
    extra_args: list[str] | None = None,
) -> SecretScanResult:
    """Scan a directory tree for committed secrets.

    Args:
        scanner: Registered secret scanner name (gitleaks, trufflehog)
        source: Directory to scan (default: current directory)
        config_path: Scanner configuration or rules file
        cwd: Working directory for the scanner
        fail_on_finding: Raise when anything is found
        extra_args: Additional scanner arguments

    Returns:
        SecretScanResult

    Raises:
        ScriptError: If findings exist and fail_on_finding is set
    """
    adapter = get_registry().get_secret_scanner(scanner)
    result = adapter.execute(
        Path(source or Path.cwd()),
        config_path=config_path,
        cwd=cwd,
        extra_args=extra_args,
    )

    if result.findings:
        logger.warning(
            "Secret scanner %s found %d potential leak(s).", scanner, len(result.findings)
        )
        if fail_on_finding:
            raise ScriptError("Secret scan found leaks. See log for details.", code="SECRETS_FOUND")
    else:
        logger.success(f"Secret scanner {scanner} reported no findings.")

    return result
