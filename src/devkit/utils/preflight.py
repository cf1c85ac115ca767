"""Preflight checks for the external tools devkit drives.

git and node are always needed. Scanners, SBOM generators and signers
published on npm count as available when npx is, since they are fetched
on demand.
"""

import shutil
from dataclasses import asdict, dataclass, field
from typing import Any

from devkit.errors import CommandError
from devkit.tools.base import ToolAdapter
from devkit.utils.exec import run_command


@dataclass
class ToolCheck:
    """One tool's status.

    ``path`` is the resolved executable, or ``npx <package>`` when the tool
    will be fetched on demand. ``message`` carries the install hint for
    missing tools.
    """

    name: str
    available: bool
    version: str | None = None
    required: bool = True
    path: str | None = None
    message: str = ""


@dataclass
class PreflightResult:
    success: bool = True
    checks: list[ToolCheck] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_check(self, check: ToolCheck) -> None:
        """Record a check; a missing required tool fails the whole result."""
        self.checks.append(check)
        if check.available:
            return
        if check.required:
            self.success = False
            self.errors.append(f"Required tool not found: {check.name}")
        else:
            self.warnings.append(f"Optional tool not found: {check.name}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# name -> (version args, install hint)
CORE_TOOLS: dict[str, tuple[list[str], str]] = {
    "git": (["--version"], "Install from: https://git-scm.com"),
    "node": (["--version"], "Install from: https://nodejs.org"),
    "npm": (["--version"], "Bundled with Node.js"),
    "pnpm": (["--version"], "Install via: npm install -g pnpm"),
    "terraform": (["version"], "Install from: https://developer.hashicorp.com/terraform"),
}


class PreflightChecker:
    """Probes PATH and version output for core tools and adapters.

    Usage:
        result = PreflightChecker().check_all(secret_scanner="trufflehog")
        if not result.success:
            raise typer.Exit(1)
    """

    def __init__(self, timeout: int = 10) -> None:
        self.timeout = timeout

    def check_command_available(self, command: str) -> tuple[bool, str | None]:
        """Check if a command is available in PATH."""
        path = shutil.which(command)
        return path is not None, path

    def get_command_version(self, command: str, version_args: list[str] | None = None) -> str | None:
        """First line of a command's version output, or None."""
        try:
            result = run_command(
                command, version_args or ["--version"], check=False, timeout=self.timeout
            )
        except CommandError:
            return None
        if not result.ok:
            return None
        output = result.stdout.strip() or result.stderr.strip()
        return output.split("\n")[0] if output else None

    def check_tool(
        self,
        name: str,
        version_args: list[str] | None = None,
        required: bool = True,
        hint: str = "",
    ) -> ToolCheck:
        """Check a binary on PATH and record its version."""
        available, path = self.check_command_available(name)
        if not available:
            return ToolCheck(name=name, available=False, required=required, message=hint)
        return ToolCheck(
            name=name,
            available=True,
            version=self.get_command_version(name, version_args),
            required=required,
            path=path,
        )

    def check_core(self, name: str, required: bool = True) -> ToolCheck:
        version_args, hint = CORE_TOOLS[name]
        return self.check_tool(name, version_args, required, hint)

    def check_adapter(self, adapter: ToolAdapter[Any], required: bool = False) -> ToolCheck:
        """Check a tool adapter's binary, accepting npx as a fallback."""
        check = self.check_tool(adapter.binary, list(adapter.version_args), required)
        check.name = adapter.name
        if check.available:
            check.message = adapter.capability
            return check

        npx_available, npx_path = self.check_command_available("npx")
        if adapter.npx_package and npx_available:
            return ToolCheck(
                name=adapter.name,
                available=True,
                required=required,
                path=f"npx {adapter.npx_package}",
                message=f"{adapter.capability} (via npx)",
            )
        check.message = f"{adapter.binary} not found on PATH"
        return check

    def check_all(
        self,
        secret_scanner: str | None = None,
        sbom_tool: str | None = None,
        signer: str | None = None,
        include_terraform: bool = False,
    ) -> PreflightResult:
        """Run all preflight checks.

        Args:
            secret_scanner: Registered scanner to check (default: registry default)
            sbom_tool: Registered SBOM generator to check
            signer: Registered signer to check
            include_terraform: Also require terraform
        """
        from devkit.tools import get_registry

        registry = get_registry()
        result = PreflightResult()

        result.add_check(self.check_core("git", required=True))
        result.add_check(self.check_core("node", required=True))
        result.add_check(self.check_core("npm", required=True))
        result.add_check(self.check_core("pnpm", required=False))
        if include_terraform:
            result.add_check(self.check_core("terraform", required=True))

        result.add_check(self.check_adapter(registry.get_secret_scanner(secret_scanner)))
        result.add_check(self.check_adapter(registry.get_sbom_generator(sbom_tool)))
        result.add_check(self.check_adapter(registry.get_signer(signer)))
        return result
