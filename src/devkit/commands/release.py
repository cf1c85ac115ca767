"""Release subcommands: notes, publish checks, flags and canaries."""

from dataclasses import fields
from pathlib import Path
from typing import Annotated

import typer

from devkit.commands import (
    echo_json,
    get_config,
    handle_errors,
    print_lines,
    read_json_file,
    split_csv,
)

app = typer.Typer(help="Release management", no_args_is_help=True)


@app.command()
def notes(
    changeset_dir: Annotated[
        Path | None, typer.Option("--dir", help="Changeset directory", file_okay=False)
    ] = None,
    group_by: Annotated[
        str, typer.Option("--group-by", help="Group entries by package or type")
    ] = "package",
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write markdown here")
    ] = None,
) -> None:
    """Build release notes from pending changesets."""
    from devkit.release import prepare_release_notes

    with handle_errors():
        result = prepare_release_notes(changeset_dir=changeset_dir, group_by=group_by)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result.markdown, encoding="utf-8")
        typer.echo(f"📄 Release notes written to: {output}")
    elif result.markdown:
        typer.echo(result.markdown)


@app.command("verify-publish")
def verify_publish(
    commands: Annotated[
        list[str] | None,
        typer.Option("--command", help="Check to run (repeatable, default: config)"),
    ] = None,
    keep_going: Annotated[
        bool, typer.Option("--keep-going", help="Run every check even after a failure")
    ] = False,
) -> None:
    """Run the pre-publish checks."""
    from devkit.release import verify_publish_state

    with handle_errors():
        result = verify_publish_state(
            commands=commands or get_config().release.publish_commands,
            bail_on_failure=not keep_going,
        )
    if not result.passed:
        print_lines("❌ Pre-publish checks failed:", result.failures)
        raise typer.Exit(1)
    typer.echo("✅ Ready to publish")


@app.command("sync-version")
def sync_version(
    package: Annotated[
        Path | None, typer.Option("--package", help="Directory to search for package.json")
    ] = None,
    tag_prefix: Annotated[
        str | None, typer.Option("--tag-prefix", help="Version tag prefix (default: config)")
    ] = None,
    registry: Annotated[
        str | None, typer.Option("--registry", help="npm registry (default: config)")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Compare package.json, the git tag and the published npm version."""
    from devkit.release import sync_version_tags

    release = get_config().release
    with handle_errors():
        result = sync_version_tags(
            package_path=package,
            tag_prefix=release.tag_prefix if tag_prefix is None else tag_prefix,
            registry=registry or release.registry,
        )
    if json_output:
        echo_json(result.to_dict())
    raise typer.Exit(0 if result.in_sync else 1)


@app.command()
def flags(
    launch_darkly: Annotated[
        Path | None,
        typer.Option("--launchdarkly", help="LaunchDarkly flag export (JSON)", dir_okay=False),
    ] = None,
    config_cat: Annotated[
        Path | None,
        typer.Option("--configcat", help="ConfigCat settings export (JSON)", dir_okay=False),
    ] = None,
    referenced: Annotated[
        str | None, typer.Option("--referenced", help="Comma-separated flags used in code")
    ] = None,
    required_tags: Annotated[
        list[str] | None, typer.Option("--required-tag", help="Tag every flag needs")
    ] = None,
    no_descriptions: Annotated[
        bool, typer.Option("--no-require-descriptions", help="Allow flags without descriptions")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Lint feature flag configuration.

    Exit codes:
        0: Configuration is healthy
        1: Configuration issues found
        2: Only dead flags found
    """
    from devkit.release import lint_flags

    with handle_errors():
        result = lint_flags(
            launch_darkly=read_json_file(launch_darkly) if launch_darkly else None,
            config_cat=read_json_file(config_cat) if config_cat else None,
            referenced_flags=split_csv(referenced),
            required_tags=required_tags,
            require_descriptions=not no_descriptions,
        )

    if json_output:
        echo_json(result.to_dict())
    else:
        if result.issues:
            print_lines("❌ Flag issues:", result.issues)
        if result.dead_flags:
            print_lines("⚠️  Possibly dead flags:", result.dead_flags)

    if result.issues:
        raise typer.Exit(1)
    raise typer.Exit(2 if result.dead_flags else 0)


@app.command()
def canary(
    canary_file: Annotated[
        Path, typer.Option("--canary", help="Canary metrics (JSON)", exists=True, dir_okay=False)
    ],
    baseline_file: Annotated[
        Path | None,
        typer.Option("--baseline", help="Baseline metrics (JSON)", exists=True, dir_okay=False),
    ] = None,
    thresholds_file: Annotated[
        Path | None,
        typer.Option("--thresholds", help="Thresholds (JSON)", exists=True, dir_okay=False),
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Evaluate canary metrics against thresholds and a baseline."""
    from devkit.release import CanaryMetrics, CanaryThresholds, evaluate_canary

    thresholds = None
    if thresholds_file:
        data = read_json_file(thresholds_file)
        names = {f.name for f in fields(CanaryThresholds)}
        thresholds = CanaryThresholds(**{k: v for k, v in data.items() if k in names})

    with handle_errors():
        result = evaluate_canary(
            CanaryMetrics.from_dict(read_json_file(canary_file)),
            baseline=CanaryMetrics.from_dict(read_json_file(baseline_file)) if baseline_file else None,
            thresholds=thresholds,
        )

    if json_output:
        echo_json(result.to_dict())
    elif result.reasons:
        print_lines("❌ Canary unhealthy:", result.reasons)
    else:
        typer.echo("✅ Canary healthy")
    raise typer.Exit(0 if result.healthy else 1)
