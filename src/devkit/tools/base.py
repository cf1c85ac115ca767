"""Abstract base class for external tool adapters.

Secret scanners, SBOM generators and signers are interchangeable
adapters. Each adapter:
1. Maps devkit options to the tool's command-line arguments
2. Runs the tool (retrying through npx where the tool is published there)
3. Parses tool-specific output into a devkit result record
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Generic, TypeVar

from devkit.utils.exec import CommandResult, run_command, run_with_npx_fallback

T = TypeVar("T")


class ToolAdapter(ABC, Generic[T]):
    """Abstract interface for pluggable external tools.

    Type Parameters:
        T: The result type returned by execute()

    Attributes:
        name: Tool identifier (e.g., "gitleaks", "syft", "cosign")
        capability: Capability type ("secrets", "sbom", "signing")
        binary: Executable invoked on PATH
        npx_package: npm package used when the binary is missing (optional)
        missing_pattern: Regex on output meaning "binary not installed"
    """

    binary: str = ""
    npx_package: str | None = None
    version_args: tuple[str, ...] = ("--version",)
    missing_pattern: str = r"not recognized|command not found|ENOENT|could not find"

    def __init__(self, name: str, capability: str) -> None:
        """Initialize the adapter.

        Args:
            name: Tool identifier
            capability: Capability type
        """
        self.name = name
        self.capability = capability
        self._version: str | None = None

    @property
    def version(self) -> str | None:
        """Get the tool version (cached after first check)."""
        if self._version is None:
            self._version = self.get_version()
        return self._version

    def check_available(self) -> bool:
        """Verify the binary is installed and answers its version command."""
        return run_command(
            self.binary, list(self.version_args), check=False, timeout=10
        ).ok

    def get_version(self) -> str | None:
        """Return the first line of the tool's version output."""
        result = run_command(self.binary, list(self.version_args), check=False, timeout=10)
        if not result.ok:
            return None
        output = result.stdout.strip() or result.stderr.strip()
        return output.split("\n")[0].strip() if output else None

    def run(self, args: list[str], cwd: Path | str | None = None) -> CommandResult:
        """Run the tool with npx fallback when it is not installed."""
        return run_with_npx_fallback(
            self.binary,
            args,
            self.npx_package,
            cwd=cwd,
            pattern=self.missing_pattern,
        )

    @abstractmethod
    def execute(self, input_path: Path, **options: Any) -> T:
        """Run the tool against a path and return its parsed result.

        Raises:
            ToolNotAvailableError: If tool is not installed
            ToolExecutionError: If tool execution fails
        """

    def get_metadata(self) -> dict[str, Any]:
        """Get adapter metadata for logging and debugging."""
        return {
            "name": self.name,
            "capability": self.capability,
            "version": self.version,
            "available": self.check_available(),
        }


class ToolNotAvailableError(Exception):
    """Raised when a required tool is not installed or registered."""

    def __init__(self, tool_name: str, message: str | None = None) -> None:
        self.tool_name = tool_name
        self.message = message or f"Tool not available: {tool_name}"
        super().__init__(self.message)


class ToolExecutionError(Exception):
    """Raised when a tool execution fails."""

    def __init__(
        self,
        tool_name: str,
        message: str,
        exit_code: int | None = None,
        stderr: str | None = None,
    ) -> None:
        self.tool_name = tool_name
        self.exit_code = exit_code
        self.stderr = stderr
        full_message = f"Tool execution failed: {tool_name} - {message}"
        if exit_code is not None:
            full_message += f" (exit code: {exit_code})"
        super().__init__(full_message)
