"""Secret scanner adapters (gitleaks, trufflehog).

Both scanners print findings as JSON. gitleaks emits a single JSON array,
trufflehog emits one JSON object per line; ``parse_findings`` accepts
either shape.
"""

import json
from abc import abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devkit.tools.base import ToolAdapter


@dataclass
class SecretScanResult:
    """Outcome of one secret scan.

    Attributes:
        scanner: Scanner that produced the result
        findings: Parsed finding objects as reported by the scanner
        exit_code: Scanner exit code
        raw_output: Unparsed stdout
    """

    scanner: str
    findings: list[dict[str, Any]] = field(default_factory=list)
    exit_code: int = 0
    raw_output: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "scanner": self.scanner,
            "findings": self.findings,
            "exit_code": self.exit_code,
            "raw_output": self.raw_output,
        }


def parse_findings(output: str) -> list[dict[str, Any]]:
    """Parse scanner output as a JSON document or as JSON lines.

    Lines that are not JSON (banners, progress) are ignored.
    """
    text = output.strip()
    if not text:
        return []

    try:
        document = json.loads(text)
    except json.JSONDecodeError:
        document = None
    if isinstance(document, list):
        return [item for item in document if isinstance(item, dict)]
    if isinstance(document, dict):
        return [document]

    findings: list[dict[str, Any]] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            parsed = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            findings.append(parsed)
        elif isinstance(parsed, list):
            findings.extend(item for item in parsed if isinstance(item, dict))
    return findings


class SecretScanner(ToolAdapter[SecretScanResult]):
    """Abstract interface for secret scanning tools."""

    def __init__(self, name: str) -> None:
        super().__init__(name=name, capability="secrets")

    @abstractmethod
    def scan_args(self, source: str, config_path: str | None = None) -> list[str]:
        """Arguments for scanning a directory tree."""

    @abstractmethod
    def staged_args(
        self, config_path: str | None = None, include_untracked: bool = False
    ) -> list[str]:
        """Arguments for scanning the changes about to be committed."""

    def execute(
        self,
        input_path: Path,
        config_path: str | None = None,
        cwd: Path | str | None = None,
        extra_args: list[str] | None = None,
        staged: bool = False,
        include_untracked: bool = False,
    ) -> SecretScanResult:
        """Scan for secrets.

        Args:
            input_path: Directory to scan (ignored for staged scans)
            config_path: Scanner configuration/rules file
            cwd: Working directory for the scanner process
            extra_args: Additional scanner arguments
            staged: Scan staged changes instead of the directory tree
            include_untracked: Include unstaged changes in a staged scan

        Returns:
            SecretScanResult with parsed findings
        """
        if staged:
            args = self.staged_args(config_path, include_untracked)
        else:
            args = self.scan_args(str(input_path), config_path)
        args.extend(extra_args or [])

        result = self.run(args, cwd=cwd)
        return SecretScanResult(
            scanner=self.name,
            findings=parse_findings(result.stdout),
            exit_code=result.code,
            raw_output=result.stdout,
        )


class GitleaksAdapter(SecretScanner):
    """Secret scanning via gitleaks (https://github.com/gitleaks/gitleaks)."""

    binary = "gitleaks"
    npx_package = "gitleaks@latest"
    version_args = ("version",)

    def __init__(self, name: str = "gitleaks") -> None:
        super().__init__(name=name)

    def scan_args(self, source: str, config_path: str | None = None) -> list[str]:
        args = ["detect", "--source", source, "--no-banner", "--redact", "--report-format", "json"]
        if config_path:
            args.extend(["--config", config_path])
        return args

    def staged_args(
        self, config_path: str | None = None, include_untracked: bool = False
    ) -> list[str]:
        args = ["detect", "--staged", "--no-banner", "--redact", "--report-format", "json"]
        if include_untracked:
            args.append("--unstaged")
        if config_path:
            args.extend(["--config", config_path])
        return args


class TrufflehogAdapter(SecretScanner):
    """Secret scanning via trufflehog (https://github.com/trufflesecurity/trufflehog)."""

    binary = "trufflehog"
    npx_package = "trufflehog@latest"

    def __init__(self, name: str = "trufflehog") -> None:
        super().__init__(name=name)

    def scan_args(self, source: str, config_path: str | None = None) -> list[str]:
        args = ["filesystem", source, "--json"]
        if config_path:
            args.extend(["--rules", config_path])
        return args

    def staged_args(
        self, config_path: str | None = None, include_untracked: bool = False
    ) -> list[str]:
        args = ["filesystem", ".", "--fail", "--json"]
        if config_path:
            args.extend(["--rules", config_path])
        return args
