"""Unit tests for structured service logging."""

import io
import json
from pathlib import Path

import pytest

from devkit.observability import bootstrap_structured_logging, create_structured_logger, redact
from devkit.observability.logging import REDACTED, resolve_level


class TestBootstrap:
    """Tests for writing the logging policy."""

    def test_writes_config(self, tmp_path: Path) -> None:
        """Test the policy file contains service, levels and redaction."""
        path = bootstrap_structured_logging(
            "billing",
            target_dir=tmp_path,
            otlp_endpoint="http://collector:4318",
            environment_levels={"staging": "debug"},
        )

        assert path == tmp_path / ".devkit" / "logging.config.json"
        config = json.loads(path.read_text())
        assert config["service"] == {"name": "billing", "schemaPath": "schemas/logging"}
        assert config["output"]["otlp"] == {"endpoint": "http://collector:4318", "enabled": True}
        assert config["levels"]["staging"] == "debug"
        assert config["levels"]["production"] == "warn"
        assert "password" in config["redaction"]["fields"]
        assert not (tmp_path / ".devkit" / "logging.example.md").exists()

    def test_example_written_on_request(self, tmp_path: Path) -> None:
        """Test include_example adds the markdown quickstart."""
        bootstrap_structured_logging("billing", target_dir=tmp_path, include_example=True)

        example = (tmp_path / ".devkit" / "logging.example.md").read_text()
        assert "billing" in example


class TestStructuredLogger:
    """Tests for the runtime JSON logger."""

    def test_entries_carry_context(self) -> None:
        """Test bound context and per-call metadata are emitted."""
        stream = io.StringIO()
        log = create_structured_logger(
            "orders", environment="development", context={"region": "eu"}, stream=stream
        )

        log.info("order placed", meta={"orderId": 7, "token": "tok_123"})

        entry = json.loads(stream.getvalue())
        assert entry["msg"] == "order placed"
        assert entry["level"] == "INFO"
        assert entry["service"] == "orders"
        assert entry["environment"] == "development"
        assert entry["region"] == "eu"
        assert entry["orderId"] == 7
        assert entry["token"] == REDACTED

    def test_production_level(self) -> None:
        """Test production only emits warnings and above."""
        stream = io.StringIO()
        log = create_structured_logger("search", environment="production", stream=stream)

        log.info("ignored")
        log.fatal("down")

        lines = stream.getvalue().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["level"] == "CRITICAL"

    def test_bind(self) -> None:
        """Test bind layers context without changing the parent."""
        stream = io.StringIO()
        log = create_structured_logger("auth", level="debug", stream=stream)

        child = log.bind(requestId="r-1")
        child.debug("checked")
        log.debug("plain")

        first, second = (json.loads(line) for line in stream.getvalue().splitlines())
        assert first["requestId"] == "r-1"
        assert "requestId" not in second


class TestRedaction:
    """Tests for redaction and level helpers."""

    def test_nested_and_case_insensitive(self) -> None:
        """Test keys are redacted at any depth regardless of case."""
        value = {"user": {"Password": "x", "name": "ada"}, "items": [{"apiKey": "k"}]}

        assert redact(value, ["password", "apikey"]) == {
            "user": {"Password": REDACTED, "name": "ada"},
            "items": [{"apiKey": REDACTED}],
        }

    def test_resolve_level(self) -> None:
        """Test explicit levels win and unknown names are rejected."""
        assert resolve_level("error", "development") == 40
        assert resolve_level(None, "development") == 10
        assert resolve_level(None, None) == 20
        with pytest.raises(ValueError, match="Invalid log level"):
            resolve_level("trace", None)
