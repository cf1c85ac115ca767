"""Dataset schema validation, profiling and drift detection.

A schema maps field names to a type name or a rule::

    {"id": "number", "status": {"type": "string", "enum": ["active", "closed"]},
     "note": {"type": "string", "optional": true}}
"""

import json
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

from devkit.errors import FileError, ScriptError, ValidationError
from devkit.utils.files import read_json
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

FIELD_TYPES = ("string", "number", "boolean", "object", "array", "date", "null", "unknown")
DRIFT_KINDS = {"missing-field", "new-field", "presence-drift", "type-drift", "enum-violation"}
MIN_RATIO = 0.0001

Record = dict[str, Any]


# =============================================================================
# Types
# =============================================================================


@dataclass
class FieldRule:
    type: str
    optional: bool = False
    enum: list[Any] | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        if self.type not in FIELD_TYPES:
            raise ValueError(f"Invalid field type: {self.type}. Valid: {set(FIELD_TYPES)}")

    @classmethod
    def parse(cls, rule: "str | dict[str, Any] | FieldRule") -> "FieldRule":
        if isinstance(rule, FieldRule):
            return rule
        if isinstance(rule, str):
            return cls(type=rule)
        return cls(
            type=rule["type"],
            optional=rule.get("optional", False),
            enum=rule.get("enum"),
            description=rule.get("description"),
        )


@dataclass
class SchemaProfile:
    """Field presence ratios and per-field type counts for a dataset."""

    total_records: int = 0
    field_presence: dict[str, float] = field(default_factory=dict)
    type_distribution: dict[str, dict[str, int]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SchemaProfile":
        return cls(
            total_records=data.get("total_records", data.get("totalRecords", 0)),
            field_presence=data.get("field_presence", data.get("fieldPresence", {})),
            type_distribution=data.get("type_distribution", data.get("typeDistribution", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_records": self.total_records,
            "field_presence": self.field_presence,
            "type_distribution": self.type_distribution,
        }


@dataclass
class SchemaDrift:
    field: str
    kind: str
    description: str
    delta: float | None = None

    def __post_init__(self) -> None:
        if self.kind not in DRIFT_KINDS:
            raise ValueError(f"Invalid drift kind: {self.kind}. Valid: {DRIFT_KINDS}")

    def to_dict(self) -> dict[str, Any]:
        return vars(self).copy()


@dataclass
class SchemaValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)
    profile: SchemaProfile = field(default_factory=SchemaProfile)
    drift: list[SchemaDrift] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": self.errors,
            "profile": self.profile.to_dict(),
            "drift": [d.to_dict() for d in self.drift] if self.drift is not None else None,
        }


# =============================================================================
# Helpers
# =============================================================================


def detect_type(value: Any) -> str:
    """Classify a JSON value. ISO-8601 looking strings count as dates."""
    if value is None:
        return "null"
    if isinstance(value, list):
        return "array"
    if isinstance(value, (date, datetime)):
        return "date"
    if isinstance(value, str):
        if 10 <= len(value) <= 30:
            try:
                datetime.fromisoformat(value)
                return "date"
            except ValueError:
                pass
        return "string"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, dict):
        return "object"
    return "unknown"


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (str, int, float)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return f"[{type(value).__name__} value]"


def load_dataset(dataset: Sequence[Record] | None, dataset_path: str | Path | None) -> list[Record]:
    """Records given directly, or read from a JSON array / ``{"data": [...]}`` file."""
    if dataset is not None:
        return list(dataset)
    if not dataset_path:
        raise ValidationError("dataset or dataset_path is required for schema validation")

    path = Path(dataset_path)
    try:
        parsed = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise FileError(f"Could not read dataset {path}: {e}", str(path), "read") from e
    except json.JSONDecodeError as e:
        raise ValidationError(f"Failed to parse dataset: {e}", field="dataset_path") from e

    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict) and isinstance(parsed.get("data"), list):
        return parsed["data"]
    raise ValidationError("Dataset file must contain an array or an object with a data array")


def load_schema(
    schema: dict[str, Any] | None, schema_path: str | Path | None
) -> dict[str, FieldRule]:
    if schema is None:
        if not schema_path:
            raise ValidationError("schema or schema_path is required for schema validation")
        schema = read_json(schema_path)
    return {name: FieldRule.parse(rule) for name, rule in schema.items()}


# =============================================================================
# Validation, profiling, drift
# =============================================================================


def validate_record(
    record: Record, schema: dict[str, FieldRule], allow_additional_fields: bool = True
) -> list[str]:
    errors = []
    for name, rule in schema.items():
        value = record.get(name)
        if value is None:
            if not rule.optional:
                errors.append(f'Field "{name}" is required but missing or null.')
            continue

        value_type = detect_type(value)
        if value_type != rule.type:
            errors.append(f'Field "{name}" expected type {rule.type} but received {value_type}.')
            continue

        if rule.enum is not None and value not in rule.enum:
            allowed = ", ".join(format_value(v) for v in rule.enum)
            errors.append(
                f'Field "{name}" value {format_value(value)} is not in allowed enum: {allowed}.'
            )

    if not allow_additional_fields:
        errors.extend(
            f'Unexpected field "{key}" present in record.' for key in record if key not in schema
        )
    return errors


def build_profile(records: Sequence[Record]) -> SchemaProfile:
    """Presence ratio and type histogram per field."""
    counts: dict[str, int] = {}
    distribution: dict[str, dict[str, int]] = {}
    for record in records:
        for key, value in record.items():
            counts[key] = counts.get(key, 0) + 1
            types = distribution.setdefault(key, dict.fromkeys(FIELD_TYPES, 0))
            types[detect_type(value)] += 1

    total = len(records) or 1
    presence = {key: count / total for key, count in counts.items()}
    return SchemaProfile(len(records), presence, distribution)


def _ratio(counts: dict[str, int], key: str) -> float:
    return counts.get(key, 0) / (sum(counts.values()) or 1)


def detect_schema_drift(
    profile: SchemaProfile, baseline: SchemaProfile, threshold: float = 0.2
) -> list[SchemaDrift]:
    """Compare a profile with a baseline.

    Presence and per-type ratios are compared relative to the baseline
    value; changes above threshold are reported.
    """
    drift: list[SchemaDrift] = []
    names = list(dict.fromkeys([*profile.field_presence, *baseline.field_presence]))

    for name in names:
        current = profile.field_presence.get(name)
        previous = baseline.field_presence.get(name)
        if previous is None:
            drift.append(SchemaDrift(name, "new-field", f'Field "{name}" not present in baseline.'))
            continue
        if current is None:
            drift.append(
                SchemaDrift(name, "missing-field", f'Field "{name}" missing from current dataset.')
            )
            continue

        delta = abs(current - previous) / max(previous, MIN_RATIO)
        if delta > threshold:
            drift.append(
                SchemaDrift(
                    name,
                    "presence-drift",
                    f'Field "{name}" presence drifted by {delta * 100:.1f}% '
                    f"(baseline {previous * 100:.1f}%, current {current * 100:.1f}%).",
                    delta,
                )
            )

        current_types = profile.type_distribution.get(name, {})
        baseline_types = baseline.type_distribution.get(name, {})
        for type_name in dict.fromkeys([*current_types, *baseline_types]):
            baseline_ratio = _ratio(baseline_types, type_name)
            current_ratio = _ratio(current_types, type_name)
            type_delta = abs(current_ratio - baseline_ratio) / max(baseline_ratio, MIN_RATIO)
            if type_delta > threshold:
                drift.append(
                    SchemaDrift(
                        name,
                        "type-drift",
                        f'Type distribution for "{name}" drifted (baseline {type_name}: '
                        f"{baseline_ratio * 100:.1f}%, current {current_ratio * 100:.1f}%).",
                        type_delta,
                    )
                )
    return drift


def validate_dataset_schema(
    dataset: Sequence[Record] | None = None,
    dataset_path: str | Path | None = None,
    schema: dict[str, Any] | None = None,
    schema_path: str | Path | None = None,
    allow_additional_fields: bool = True,
    drift_baseline_path: str | Path | None = None,
    drift_threshold: float = 0.2,
    fail_on_error: bool = False,
) -> SchemaValidationResult:
    """Validate records against a schema and optionally check drift.

    Drift is only computed when drift_baseline_path exists; a missing
    baseline is a warning.

    Raises:
        ValidationError: If dataset or schema inputs are missing or malformed
        ScriptError: If fail_on_error is set and there are errors or drift
    """
    records = load_dataset(dataset, dataset_path)
    rules = load_schema(schema, schema_path)

    errors = [
        error
        for record in records
        for error in validate_record(record, rules, allow_additional_fields)
    ]
    profile = build_profile(records)

    drift = None
    if drift_baseline_path and Path(drift_baseline_path).exists():
        baseline = SchemaProfile.from_dict(read_json(drift_baseline_path))
        drift = detect_schema_drift(profile, baseline, drift_threshold)
    elif drift_baseline_path:
        logger.warning(
            "Drift baseline not found at %s. Provide a baseline to enable drift alerts.",
            drift_baseline_path,
        )

    if errors:
        logger.error("Schema validation failed with %d issue(s).", len(errors))
    else:
        logger.success("Schema validation passed.")
    if drift:
        logger.warning("Schema drift detected: %d alert(s).", len(drift))

    if fail_on_error and (errors or drift):
        raise ScriptError("Schema validation failed due to errors or drift.", code="SCHEMA_INVALID")

    return SchemaValidationResult(not errors, errors, profile, drift)
