"""Structured JSON logging for services.

``bootstrap_structured_logging`` writes a shared logging policy
(``.devkit/logging.config.json``). ``create_structured_logger`` returns a
logger that emits JSON lines with bound context and redacted fields.
"""

import logging
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any, TextIO

from devkit.templates import render_template
from devkit.utils.files import write_json
from devkit.utils.logging import JSONFormatter, get_logger

logger = get_logger(__name__)

CONFIG_DIR = ".devkit"
CONFIG_FILE = "logging.config.json"
EXAMPLE_FILE = "logging.example.md"
REDACTED = "[REDACTED]"

DEFAULT_REDACTION_FIELDS = (
    "password",
    "token",
    "secret",
    "authorization",
    "apiKey",
    "sessionId",
)
DEFAULT_CONTEXT_KEYS = ("traceId", "spanId", "requestId", "correlationId", "userId")
DEFAULT_ENVIRONMENT_LEVELS = {
    "development": "debug",
    "test": "info",
    "ci": "info",
    "staging": "info",
    "production": "warn",
}
REDACTION_PATTERNS = ("(?i)password", "(?i)secret", "(?i)authorization", "(?i)api[_-]?key")

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
}


# =============================================================================
# Config bootstrap
# =============================================================================


def bootstrap_structured_logging(
    service_name: str,
    target_dir: str | Path | None = None,
    schema_path: str = "schemas/logging",
    otlp_endpoint: str | None = None,
    redact_fields: list[str] | None = None,
    environment_levels: dict[str, str] | None = None,
    include_example: bool = False,
) -> Path:
    """Write the logging policy for a service.

    Args:
        service_name: Service identifier written into every log entry
        target_dir: Project root (default: current directory)
        schema_path: Where the service's log schemas live
        otlp_endpoint: OTLP collector; enables export when set
        redact_fields: Field names to redact (default: common secrets)
        environment_levels: Per-environment level overrides
        include_example: Also write a markdown quickstart

    Returns:
        Path of the written config file
    """
    config_dir = Path(target_dir or Path.cwd()) / CONFIG_DIR
    config_path = config_dir / CONFIG_FILE

    config = {
        "service": {"name": service_name, "schemaPath": schema_path},
        "output": {
            "format": "json",
            "otlp": {"endpoint": otlp_endpoint, "enabled": True}
            if otlp_endpoint
            else {"enabled": False},
        },
        "levels": {**DEFAULT_ENVIRONMENT_LEVELS, **(environment_levels or {})},
        "redaction": {
            "fields": list(redact_fields or DEFAULT_REDACTION_FIELDS),
            "patterns": list(REDACTION_PATTERNS),
        },
        "context": {"keys": list(DEFAULT_CONTEXT_KEYS), "propagate": True},
    }

    config_dir.mkdir(parents=True, exist_ok=True)
    write_json(config_path, config)

    if include_example:
        example = render_template(
            "logging_example.md.j2",
            service_name=service_name,
            config_path=f"{CONFIG_DIR}/{CONFIG_FILE}",
        )
        (config_dir / EXAMPLE_FILE).write_text(example, encoding="utf-8")

    logger.success(f"Created logging config at {config_path}")
    return config_path


# =============================================================================
# Runtime logger
# =============================================================================


def redact(value: Any, fields: Iterable[str]) -> Any:
    """Replace values of sensitive keys, at any depth. Keys match case-insensitively."""
    names = {f.lower() for f in fields}

    def walk(item: Any) -> Any:
        if isinstance(item, dict):
            return {
                k: REDACTED if str(k).lower() in names else walk(v) for k, v in item.items()
            }
        if isinstance(item, list):
            return [walk(v) for v in item]
        return item

    return walk(value)


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """Binds service context to each record and redacts sensitive fields.

    Per-call metadata goes in ``meta``::

        log.info("charged card", meta={"amount": 12, "token": "tok_123"})
    """

    def __init__(
        self, base: logging.Logger, context: dict[str, Any], redact_fields: Iterable[str]
    ) -> None:
        super().__init__(base, context)
        self.redact_fields = tuple(redact_fields)

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        meta = kwargs.pop("meta", None) or {}
        payload = redact({**self.extra, **meta}, self.redact_fields)
        kwargs["extra"] = {**kwargs.get("extra", {}), "extra_data": payload}
        return msg, kwargs

    def fatal(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.critical(msg, *args, **kwargs)

    def bind(self, **context: Any) -> "StructuredLoggerAdapter":
        """New adapter with extra context on top of this one's."""
        return StructuredLoggerAdapter(self.logger, {**self.extra, **context}, self.redact_fields)


def resolve_level(level: str | None, environment: str | None) -> int:
    name = level or DEFAULT_ENVIRONMENT_LEVELS.get(environment or "", "info")
    if name.lower() not in LEVELS:
        raise ValueError(f"Invalid log level: {name}. Valid: {set(LEVELS)}")
    return LEVELS[name.lower()]


def create_structured_logger(
    service_name: str,
    environment: str | None = None,
    level: str | None = None,
    redact_fields: list[str] | None = None,
    context: dict[str, Any] | None = None,
    stream: TextIO | None = None,
) -> StructuredLoggerAdapter:
    """Create a JSON-lines logger for a service.

    Args:
        service_name: Included in every entry as ``service``
        environment: Picks the default level (production logs warnings and up)
        level: Explicit level name, overriding the environment default
        redact_fields: Keys whose values are replaced (default: common secrets)
        context: Values attached to every entry, such as request_id
        stream: Output stream (default: stdout)
    """
    base = logging.getLogger(f"service.{service_name}")
    base.setLevel(resolve_level(level, environment))
    base.propagate = False
    base.handlers.clear()
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter())
    base.addHandler(handler)

    bound = {"service": service_name, **({"environment": environment} if environment else {})}
    bound.update(context or {})
    return StructuredLoggerAdapter(base, bound, redact_fields or DEFAULT_REDACTION_FIELDS)
