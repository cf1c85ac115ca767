"""Tool registry for pluggable external tools.

The registry maps tool names from configuration (``tools.secret_scanner``,
``tools.sbom``, ``tools.signer``) to adapter classes.
"""

from typing import Any

from devkit.tools.base import ToolNotAvailableError
from devkit.tools.sbom import CycloneDXAdapter, SBOMGenerator, SyftAdapter
from devkit.tools.secrets import GitleaksAdapter, SecretScanner, TrufflehogAdapter
from devkit.tools.signing import CosignAdapter, GpgAdapter, Signer


class ToolRegistry:
    """Registry of available tool adapters for each capability.

    Configuration example:
        tools:
          secret_scanner: gitleaks  # -> GitleaksAdapter
          sbom: syft                # -> SyftAdapter
          signer: cosign            # -> CosignAdapter

    Adding a new tool:
        1. Subclass SecretScanner, SBOMGenerator or Signer
        2. Register it here
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._secret_scanners: dict[str, type[SecretScanner]] = {}
        self._sbom_generators: dict[str, type[SBOMGenerator]] = {}
        self._signers: dict[str, type[Signer]] = {}
        self._default_secret_scanner: str | None = None
        self._default_sbom: str | None = None
        self._default_signer: str | None = None

    # =========================================================================
    # Registration
    # =========================================================================

    def register_secret_scanner(
        self,
        name: str,
        adapter_class: type[SecretScanner],
        is_default: bool = False,
    ) -> None:
        """Register a secret scanner adapter."""
        self._secret_scanners[name] = adapter_class
        if is_default:
            self._default_secret_scanner = name

    def register_sbom_generator(
        self,
        name: str,
        adapter_class: type[SBOMGenerator],
        is_default: bool = False,
    ) -> None:
        """Register an SBOM generator adapter."""
        self._sbom_generators[name] = adapter_class
        if is_default:
            self._default_sbom = name

    def register_signer(
        self,
        name: str,
        adapter_class: type[Signer],
        is_default: bool = False,
    ) -> None:
        """Register an artifact signing adapter."""
        self._signers[name] = adapter_class
        if is_default:
            self._default_signer = name

    # =========================================================================
    # Retrieval
    # =========================================================================

    def get_secret_scanner(self, name: str | None = None) -> SecretScanner:
        """Get a secret scanner instance.

        Args:
            name: Tool name (uses default if None)

        Raises:
            ToolNotAvailableError: If tool is not registered
        """
        tool_name = name or self._default_secret_scanner
        if tool_name is None:
            raise ToolNotAvailableError("secrets", "No secret scanner configured")

        if tool_name not in self._secret_scanners:
            available = list(self._secret_scanners.keys())
            raise ToolNotAvailableError(
                tool_name,
                f"Secret scanner '{tool_name}' not registered. Available: {available}",
            )

        return self._secret_scanners[tool_name](tool_name)

    def get_sbom_generator(self, name: str | None = None) -> SBOMGenerator:
        """Get an SBOM generator instance.

        Raises:
            ToolNotAvailableError: If tool is not registered
        """
        tool_name = name or self._default_sbom
        if tool_name is None:
            raise ToolNotAvailableError("sbom", "No SBOM tool configured")

        if tool_name not in self._sbom_generators:
            available = list(self._sbom_generators.keys())
            raise ToolNotAvailableError(
                tool_name,
                f"SBOM tool '{tool_name}' not registered. Available: {available}",
            )

        return self._sbom_generators[tool_name](tool_name)

    def get_signer(self, name: str | None = None) -> Signer:
        """Get a signing tool instance.

        Raises:
            ToolNotAvailableError: If tool is not registered
        """
        tool_name = name or self._default_signer
        if tool_name is None:
            raise ToolNotAvailableError("signing", "No signing tool configured")

        if tool_name not in self._signers:
            available = list(self._signers.keys())
            raise ToolNotAvailableError(
                tool_name,
                f"Signing tool '{tool_name}' not registered. Available: {available}",
            )

        return self._signers[tool_name](tool_name)

    # =========================================================================
    # Introspection
    # =========================================================================

    def list_secret_scanners(self) -> list[str]:
        return list(self._secret_scanners.keys())

    def list_sbom_generators(self) -> list[str]:
        return list(self._sbom_generators.keys())

    def list_signers(self) -> list[str]:
        return list(self._signers.keys())

    def get_available_tools(self) -> dict[str, list[str]]:
        """Get all registered tools by capability."""
        return {
            "secrets": self.list_secret_scanners(),
            "sbom": self.list_sbom_generators(),
            "signing": self.list_signers(),
        }

    def check_tool_availability(self) -> dict[str, dict[str, bool]]:
        """Check which registered tools are installed.

        Returns:
            Dictionary mapping capability -> tool -> availability
        """
        groups: dict[str, dict[str, Any]] = {
            "secrets": self._secret_scanners,
            "sbom": self._sbom_generators,
            "signing": self._signers,
        }
        return {
            capability: {name: cls(name).check_available() for name, cls in adapters.items()}
            for capability, adapters in groups.items()
        }

    def get_metadata(self) -> dict[str, Any]:
        """Get registry metadata for logging and debugging."""
        return {
            "secret_scanners": self.list_secret_scanners(),
            "sbom_generators": self.list_sbom_generators(),
            "signers": self.list_signers(),
            "default_secret_scanner": self._default_secret_scanner,
            "default_sbom": self._default_sbom,
            "default_signer": self._default_signer,
        }


def _register_builtin(registry: ToolRegistry) -> None:
    registry.register_secret_scanner("gitleaks", GitleaksAdapter, is_default=True)
    registry.register_secret_scanner("trufflehog", TrufflehogAdapter)
    registry.register_sbom_generator("syft", SyftAdapter, is_default=True)
    registry.register_sbom_generator("cyclonedx", CycloneDXAdapter)
    registry.register_signer("cosign", CosignAdapter, is_default=True)
    registry.register_signer("gpg", GpgAdapter)


# Global registry instance
_registry: ToolRegistry | None = None


def get_registry() -> ToolRegistry:
    """Get the global tool registry with the built-in adapters registered."""
    global _registry
    if _registry is None:
        _registry = ToolRegistry()
        _register_builtin(_registry)
    return _registry


def reset_registry() -> None:
    """Reset the global registry (primarily for testing)."""
    global _registry
    _registry = None
