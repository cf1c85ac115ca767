"""Data hygiene: PII scanning and dataset schema checks."""

from devkit.data.pii import PiiFinding, PiiRule, PiiScanResult, scan_pii
from devkit.data.schema import (
    SchemaDrift,
    SchemaProfile,
    SchemaValidationResult,
    build_profile,
    detect_schema_drift,
    validate_dataset_schema,
)

__all__ = [
    "PiiFinding",
    "PiiRule",
    "PiiScanResult",
    "SchemaDrift",
    "SchemaProfile",
    "SchemaValidationResult",
    "build_profile",
    "detect_schema_drift",
    "scan_pii",
    "validate_dataset_schema",
]
