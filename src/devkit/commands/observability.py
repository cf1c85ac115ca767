"""Observability subcommands: logging policy scaffolding and JSON log lines."""

from pathlib import Path
from typing import Annotated

import typer

from devkit.commands import handle_errors, parse_pairs

app = typer.Typer(help="Structured logging scaffolding", no_args_is_help=True)


@app.command("bootstrap-logging")
def bootstrap_logging(
    service: Annotated[str, typer.Argument(help="Service name")],
    target_dir: Annotated[
        Path | None, typer.Option("--target-dir", help="Project root", file_okay=False)
    ] = None,
    schema_path: Annotated[
        str, typer.Option("--schema-path", help="Log schema directory")
    ] = "schemas/logging",
    otlp_endpoint: Annotated[
        str | None, typer.Option("--otlp", help="OTLP collector endpoint")
    ] = None,
    redact_fields: Annotated[
        list[str] | None, typer.Option("--redact", help="Field to redact (repeatable)")
    ] = None,
    levels: Annotated[
        list[str] | None, typer.Option("--level", help="env=level override (repeatable)")
    ] = None,
    example: Annotated[
        bool, typer.Option("--example", help="Also write a markdown quickstart")
    ] = False,
) -> None:
    """Write .devkit/logging.config.json for a service."""
    from devkit.observability import bootstrap_structured_logging

    with handle_errors():
        path = bootstrap_structured_logging(
            service,
            target_dir=target_dir,
            schema_path=schema_path,
            otlp_endpoint=otlp_endpoint,
            redact_fields=redact_fields,
            environment_levels=parse_pairs(levels, "--level") or None,
            include_example=example,
        )
    typer.echo(f"📄 Logging config written to: {path}")


@app.command()
def emit(
    service: Annotated[str, typer.Argument(help="Service name")],
    message: Annotated[str, typer.Argument(help="Log message")],
    level: Annotated[str, typer.Option("--level", help="debug, info, warn or error")] = "info",
    environment: Annotated[
        str | None, typer.Option("--env", help="Environment name added to every entry")
    ] = None,
    fields: Annotated[
        list[str] | None, typer.Option("--field", help="key=value metadata (repeatable)")
    ] = None,
) -> None:
    """Write one structured JSON log line to stdout (for shell scripts)."""
    from devkit.observability import create_structured_logger
    from devkit.observability.logging import LEVELS

    if level not in LEVELS:
        raise typer.BadParameter(f"Unknown level: {level}", param_hint="--level")

    log = create_structured_logger(service, environment=environment, level="debug")
    log.log(LEVELS[level], message, meta=parse_pairs(fields, "--field"))
