"""Observability scaffolding."""

from devkit.observability.logging import (
    StructuredLoggerAdapter,
    bootstrap_structured_logging,
    create_structured_logger,
    redact,
)

__all__ = [
    "StructuredLoggerAdapter",
    "bootstrap_structured_logging",
    "create_structured_logger",
    "redact",
]
