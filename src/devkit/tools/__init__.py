"""devkit tool adapters - pluggable external tools.

- Secret scanners: gitleaks, trufflehog
- SBOM generators: syft, cdxgen (CycloneDX)
- Signers: cosign, gpg
"""

from devkit.tools.base import ToolAdapter, ToolExecutionError, ToolNotAvailableError
from devkit.tools.registry import ToolRegistry, get_registry, reset_registry
from devkit.tools.sbom import SBOMGenerator
from devkit.tools.secrets import SecretScanner, SecretScanResult
from devkit.tools.signing import Signer

__all__ = [
    "SBOMGenerator",
    "SecretScanResult",
    "SecretScanner",
    "Signer",
    "ToolAdapter",
    "ToolExecutionError",
    "ToolNotAvailableError",
    "ToolRegistry",
    "get_registry",
    "reset_registry",
]
