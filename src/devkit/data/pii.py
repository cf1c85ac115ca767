"""Regex-based scan for personal data and secrets in source and data files."""

import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devkit.errors import ScriptError
from devkit.utils.files import find_files, get_relative_path
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

SEVERITIES = ("low", "medium", "high")
DEFAULT_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".json", ".yaml", ".yml", ".csv", ".txt")
DEFAULT_EXCLUDES = (r"node_modules", r".git/", r"dist/", r"build/")


@dataclass
class PiiRule:
    id: str
    description: str
    pattern: str
    severity: str = "medium"
    recommendation: str | None = None

    def __post_init__(self) -> None:
        if self.severity not in SEVERITIES:
            raise ValueError(f"Invalid severity: {self.severity}. Valid: {set(SEVERITIES)}")
        self.regex = re.compile(self.pattern)


@dataclass
class PiiFinding:
    file: str
    line: int
    column: int
    match: str
    rule_id: str
    severity: str
    recommendation: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return vars(self).copy()


@dataclass
class PiiScanResult:
    findings: list[PiiFinding] = field(default_factory=list)
    scanned_files: int = 0

    def severity_counts(self) -> dict[str, int]:
        counts = Counter(f.severity for f in self.findings)
        return {severity: counts.get(severity, 0) for severity in SEVERITIES}

    def to_dict(self) -> dict[str, Any]:
        return {
            "findings": [f.to_dict() for f in self.findings],
            "scanned_files": self.scanned_files,
        }


DEFAULT_RULES = (
    PiiRule(
        "email",
        "Email addresses",
        r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}",
        "medium",
        "Remove or redact email addresses before committing.",
    ),
    PiiRule(
        "phone",
        "Phone numbers",
        r"(?:\+?\d{1,3}[\s-]?)?(?:\(?\d{3}\)?[\s-]?)?\d{3}[\s-]?\d{4}",
        "medium",
        "Redact or tokenize phone numbers.",
    ),
    PiiRule(
        "ssn",
        "US Social Security Number",
        r"\b\d{3}-\d{2}-\d{4}\b",
        "high",
        "Remove SSNs from datasets or replace with synthetic values.",
    ),
    PiiRule(
        "credit_card",
        "Credit card numbers (Luhn-like patterns)",
        r"\b(?:\d[ -]*?){13,16}\b",
        "high",
        "Do not store raw payment card data. Use a PCI-compliant vault.",
    ),
    PiiRule(
        "api_key",
        "Generic API keys and tokens",
        r"(?:(?:sk|rk|pk)_)?[A-Za-z0-9]{16,}",
        "high",
        "Store secrets in a vault and inject via environment variables.",
    ),
    PiiRule(
        "ipv4",
        "IPv4 addresses",
        r"\b(?:\d{1,3}\.){3}\d{1,3}\b",
        "low",
        "Mask IP addresses unless needed for troubleshooting.",
    ),
)


def merge_rules(custom_rules: list[PiiRule] | None) -> list[PiiRule]:
    """Defaults plus custom rules; a custom rule replaces a default with the same id."""
    merged = {rule.id: rule for rule in DEFAULT_RULES}
    for rule in custom_rules or []:
        merged[rule.id] = rule
    return list(merged.values())


def scan_content(content: str, relative_path: str, rules: list[PiiRule]) -> list[PiiFinding]:
    findings = []
    lines = re.split(r"\r?\n", content)
    for rule in rules:
        for number, line in enumerate(lines, start=1):
            for match in rule.regex.finditer(line):
                if not match.group(0):
                    continue
                findings.append(
                    PiiFinding(
                        file=relative_path,
                        line=number,
                        column=match.start() + 1,
                        match=match.group(0),
                        rule_id=rule.id,
                        severity=rule.severity,
                        recommendation=rule.recommendation,
                    )
                )
    return findings


def _should_include(path: Path, extensions: list[str], excludes: list[re.Pattern[str]]) -> bool:
    posix = path.as_posix()
    if any(pattern.search(posix) for pattern in excludes):
        return False
    return not extensions or path.suffix.lower() in extensions


def _read_limited(path: Path, max_file_size_kb: float) -> str | None:
    size_kb = path.stat().st_size / 1024
    if size_kb > max_file_size_kb:
        logger.warning(
            "Skipping %s - file size %.1fKB exceeds limit %sKB.",
            get_relative_path(path),
            size_kb,
            max_file_size_kb,
        )
        return None
    return path.read_text(encoding="utf-8", errors="replace")


def scan_pii(
    roots: list[str | Path] | None = None,
    include_extensions: list[str] | None = None,
    exclude_paths: list[str] | None = None,
    rules: list[PiiRule] | None = None,
    max_file_size_kb: float = 512,
    fail_on_finding: bool = False,
) -> PiiScanResult:
    """Scan files line by line for PII patterns.

    Args:
        roots: Directories to scan (default: current directory)
        include_extensions: Lower-case suffixes to scan; empty scans everything
        exclude_paths: Regexes; matching paths are skipped
        rules: Extra or replacement rules
        max_file_size_kb: Larger files are skipped with a warning
        fail_on_finding: Raise when anything is found

    Raises:
        ScriptError: If fail_on_finding is set and there are findings
    """
    extensions = list(DEFAULT_EXTENSIONS if include_extensions is None else include_extensions)
    excludes = [re.compile(p) for p in (DEFAULT_EXCLUDES if exclude_paths is None else exclude_paths)]
    active_rules = merge_rules(rules)
    result = PiiScanResult()

    for root in roots or [Path.cwd()]:
        for path in find_files(root, r".*"):
            if not _should_include(path, extensions, excludes):
                continue
            content = _read_limited(path, max_file_size_kb)
            if not content:
                continue
            result.scanned_files += 1
            result.findings.extend(scan_content(content, get_relative_path(path), active_rules))

    if not result.findings:
        logger.success(
            f"PII scan completed. No issues found across {result.scanned_files} files."
        )
        return result

    logger.warning(
        "PII scan found %d potential issue(s): %s.",
        len(result.findings),
        result.severity_counts(),
    )
    if fail_on_finding:
        raise ScriptError(
            "PII scan detected findings. Review results before proceeding.", code="PII_FOUND"
        )
    return result
