"""Data hygiene subcommands: PII scanning and dataset schemas."""

from pathlib import Path
from typing import Annotated

import typer

from devkit.commands import echo_json, handle_errors, print_lines

app = typer.Typer(help="PII scanning and dataset schema checks", no_args_is_help=True)


@app.command()
def pii(
    roots: Annotated[
        list[Path] | None, typer.Argument(help="Directories to scan", file_okay=False)
    ] = None,
    extensions: Annotated[
        list[str] | None, typer.Option("--ext", help="File suffix to scan (repeatable)")
    ] = None,
    excludes: Annotated[
        list[str] | None, typer.Option("--exclude", help="Path regex to skip (repeatable)")
    ] = None,
    max_kb: Annotated[
        float, typer.Option("--max-kb", help="Skip files larger than this")
    ] = 512,
    fail_on_finding: Annotated[
        bool, typer.Option("--fail-on-finding", help="Exit non-zero when anything is found")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Scan files for personal data and credentials."""
    from devkit.data import scan_pii

    with handle_errors():
        result = scan_pii(
            roots=roots,
            include_extensions=extensions,
            exclude_paths=excludes,
            max_file_size_kb=max_kb,
            fail_on_finding=fail_on_finding,
        )

    if json_output:
        echo_json(result.to_dict())
    elif result.findings:
        print_lines(
            "⚠️  Potential PII:",
            [f"{f.file}:{f.line}:{f.column} [{f.severity}] {f.rule_id}" for f in result.findings],
        )


@app.command()
def schema(
    dataset: Annotated[
        Path, typer.Option("--dataset", help="JSON or JSONL records", exists=True, dir_okay=False)
    ],
    schema_file: Annotated[
        Path, typer.Option("--schema", help="JSON field rules", exists=True, dir_okay=False)
    ],
    strict: Annotated[
        bool, typer.Option("--strict", help="Reject fields the schema does not list")
    ] = False,
    baseline: Annotated[
        Path | None, typer.Option("--baseline", help="Profile to compare against")
    ] = None,
    threshold: Annotated[
        float, typer.Option("--threshold", help="Relative change reported as drift")
    ] = 0.2,
    write_profile: Annotated[
        Path | None, typer.Option("--write-profile", help="Save this run's profile here")
    ] = None,
    fail_on_error: Annotated[
        bool, typer.Option("--fail-on-error", help="Exit non-zero on errors or drift")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Validate a dataset against field rules and check for drift."""
    from devkit.data import validate_dataset_schema
    from devkit.utils.files import write_json

    with handle_errors():
        result = validate_dataset_schema(
            dataset_path=dataset,
            schema_path=schema_file,
            allow_additional_fields=not strict,
            drift_baseline_path=baseline,
            drift_threshold=threshold,
            fail_on_error=fail_on_error,
        )
        if write_profile:
            write_json(write_profile, result.profile.to_dict())

    if json_output:
        echo_json(result.to_dict())
    else:
        if result.errors:
            print_lines("❌ Schema errors:", result.errors)
        if result.drift:
            print_lines("⚠️  Drift:", [d.description for d in result.drift])
