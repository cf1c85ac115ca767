"""SBOM generator adapters (Syft, CycloneDX cdxgen).

Both generators write the SBOM document to a file; the adapters return
the resolved output path.
"""

import logging
from abc import abstractmethod
from pathlib import Path

from devkit.tools.base import ToolAdapter, ToolExecutionError

logger = logging.getLogger(__name__)

SBOM_FORMATS = ("cyclonedx-json", "cyclonedx-xml", "spdx-json")


def format_extension(sbom_format: str) -> str:
    """File extension for an SBOM format."""
    return "xml" if sbom_format == "cyclonedx-xml" else "json"


class SBOMGenerator(ToolAdapter[Path]):
    """Abstract interface for SBOM generation tools."""

    missing_pattern = r"not found|ENOENT|is not recognized|install syft|install cdxgen"

    def __init__(self, name: str) -> None:
        super().__init__(name=name, capability="sbom")

    @abstractmethod
    def build_args(self, target: Path, output: Path, sbom_format: str) -> list[str]:
        """Arguments that write an SBOM of target to output."""

    def execute(
        self,
        input_path: Path,
        output: Path | None = None,
        sbom_format: str = "cyclonedx-json",
        cwd: Path | str | None = None,
    ) -> Path:
        """Generate an SBOM for a directory.

        Args:
            input_path: Directory to analyze
            output: SBOM file path (default: ./sbom-<tool>.<ext>)
            sbom_format: One of SBOM_FORMATS
            cwd: Working directory for the generator

        Returns:
            Resolved path of the written SBOM

        Raises:
            ValueError: If the format is unknown
            ToolExecutionError: If generation fails
        """
        if sbom_format not in SBOM_FORMATS:
            raise ValueError(f"Invalid SBOM format: {sbom_format}. Valid: {set(SBOM_FORMATS)}")

        if output is None:
            output = Path.cwd() / f"sbom-{self.name}.{format_extension(sbom_format)}"
        output = Path(output).resolve()
        target = Path(input_path).resolve()
        output.parent.mkdir(parents=True, exist_ok=True)

        result = self.run(self.build_args(target, output, sbom_format), cwd=cwd)
        if not result.ok:
            raise ToolExecutionError(
                self.name,
                f"SBOM generation failed: {result.stderr or result.stdout}",
                exit_code=result.code,
                stderr=result.stderr,
            )

        logger.info("SBOM generated at %s using %s (%s)", output, self.name, sbom_format)
        return output


class SyftAdapter(SBOMGenerator):
    """SBOM generation via Anchore Syft (https://github.com/anchore/syft)."""

    binary = "syft"
    npx_package = "@anchore/syft"
    version_args = ("version",)

    def __init__(self, name: str = "syft") -> None:
        super().__init__(name=name)

    def build_args(self, target: Path, output: Path, sbom_format: str) -> list[str]:
        return ["packages", f"dir:{target}", "-o", sbom_format, "--file", str(output), "--quiet"]


class CycloneDXAdapter(SBOMGenerator):
    """SBOM generation via cdxgen (https://github.com/CycloneDX/cdxgen)."""

    binary = "cdxgen"
    npx_package = "@cyclonedx/cdxgen"

    def __init__(self, name: str = "cyclonedx") -> None:
        super().__init__(name=name)

    def build_args(self, target: Path, output: Path, sbom_format: str) -> list[str]:
        return ["-o", str(output), "-t", sbom_format, str(target)]
