"""Sanity checks for JSON log schema files."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devkit.errors import FileError
from devkit.utils.files import find_files, read_json
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_REQUIRED_FIELDS = ("name", "version")


@dataclass
class LogSchemaIssue:
    file: str
    message: str


@dataclass
class LogSchemaReport:
    files_checked: int = 0
    issues: list[LogSchemaIssue] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "files_checked": self.files_checked,
            "issues": [vars(issue) for issue in self.issues],
        }


def verify_log_schemas(
    schema_dir: str | Path | None = None,
    required_fields: list[str] | None = None,
) -> LogSchemaReport:
    """Check that every ``*.schema.json`` declares the required top-level keys.

    Args:
        schema_dir: Directory to search (default: ./schemas/logging)
        required_fields: Keys each schema must define (default: name, version)
    """
    directory = Path(schema_dir or Path.cwd() / "schemas" / "logging")
    fields = list(required_fields or DEFAULT_REQUIRED_FIELDS)

    if not directory.exists():
        logger.warning(
            "Schema directory %s not found; skipping log schema verification.", directory
        )
        return LogSchemaReport()

    schema_files = find_files(directory, r"\.schema\.json$")
    issues: list[LogSchemaIssue] = []
    for path in schema_files:
        try:
            schema = read_json(path)
        except FileError as e:
            issues.append(LogSchemaIssue(str(path), f"Failed to read schema: {e}"))
            continue
        for name in fields:
            if not isinstance(schema, dict) or name not in schema:
                issues.append(LogSchemaIssue(str(path), f'Missing required field "{name}".'))

    if issues:
        details = "\n- ".join(f"{issue.file}: {issue.message}" for issue in issues)
        logger.warning("Log schema issues detected:\n- %s", details)
    else:
        logger.success(f"Verified {len(schema_files)} log schema file(s).")
    return LogSchemaReport(len(schema_files), issues)
