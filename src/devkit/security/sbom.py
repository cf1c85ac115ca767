"""Software Bill of Materials generation and validation."""

import json
from pathlib import Path

from defusedxml import ElementTree as SafeET
from defusedxml.common import DefusedXmlException

from devkit.tools.registry import get_registry
from devkit.utils.logging import get_logger

logger = get_logger(__name__)


def generate_sbom(
    target: str | Path | None = None,
    output: str | Path | None = None,
    sbom_format: str = "cyclonedx-json",
    tool: str = "syft",
    cwd: str | Path | None = None,
) -> Path:
    """Generate an SBOM with the configured generator.

    Args:
        target: Directory to analyze (default: current directory)
        output: SBOM path (default: ./sbom-<tool>.<json|xml>)
        sbom_format: cyclonedx-json, cyclonedx-xml or spdx-json
        tool: Registered generator (syft, cyclonedx)
        cwd: Working directory for the generator

    Returns:
        Resolved path of the written SBOM

    Raises:
        ToolExecutionError: If generation fails
    """
    generator = get_registry().get_sbom_generator(tool)
    path = generator.execute(
        Path(target or Path.cwd()),
        output=Path(output) if output else None,
        sbom_format=sbom_format,
        cwd=cwd,
    )
    logger.success(f"SBOM generated at {path} using {tool} ({sbom_format}).")
    return path


def validate_sbom(sbom_path: str | Path, cwd: str | Path | None = None) -> bool:
    """Check that an SBOM file exists and parses as XML or JSON.

    ``.xml`` files are parsed as XML with DTDs and entities refused,
    everything else as JSON.
    """
    path = Path(cwd or Path.cwd()) / sbom_path

    if path.suffix == ".xml":
        try:
            SafeET.parse(path)
        except (SafeET.ParseError, DefusedXmlException, OSError) as e:
            logger.warning("SBOM XML validation reported: %s", e)
            return False
        logger.success("SBOM XML validated successfully.")
        return True

    try:
        with open(path, encoding="utf-8") as f:
            json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("SBOM JSON validation reported: %s", e)
        return False
    logger.success("SBOM JSON validated successfully.")
    return True
