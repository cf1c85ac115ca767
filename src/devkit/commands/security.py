"""Security subcommands.

Tool defaults (secret scanner, SBOM generator, signer) and license and
vulnerability policy come from the loaded configuration; options
override them per run.
"""

import os
from pathlib import Path
from typing import Annotated

import typer

from devkit.commands import (
    echo_json,
    get_config,
    handle_errors,
    parse_pairs,
    print_lines,
    split_csv,
)

app = typer.Typer(help="Secret scanning, audits, licenses, SBOMs and signing", no_args_is_help=True)


# =============================================================================
# Secrets
# =============================================================================


@app.command()
def secrets(
    scanner: Annotated[
        str | None, typer.Option("--scanner", help="gitleaks or trufflehog (default: config)")
    ] = None,
    source: Annotated[
        Path | None, typer.Option("--source", help="Directory to scan", file_okay=False)
    ] = None,
    config_file: Annotated[
        str | None, typer.Option("--config-file", help="Scanner rules/config file")
    ] = None,
    no_fail: Annotated[
        bool, typer.Option("--no-fail", help="Report findings without failing")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Scan a directory tree for committed secrets."""
    from devkit.security import scan_secrets

    with handle_errors():
        result = scan_secrets(
            scanner=scanner or get_config().tools.secret_scanner,
            source=source,
            config_path=config_file,
            fail_on_finding=not no_fail,
        )
    if json_output:
        echo_json(result.to_dict())
    raise typer.Exit(1 if result.findings and not no_fail else 0)


@app.command()
def precommit(
    scanner: Annotated[
        str | None, typer.Option("--scanner", help="gitleaks or trufflehog (default: config)")
    ] = None,
    config_file: Annotated[
        str | None, typer.Option("--config-file", help="Scanner rules/config file")
    ] = None,
    include_untracked: Annotated[
        bool, typer.Option("--include-untracked", help="Scan untracked files too")
    ] = False,
) -> None:
    """Scan staged changes for secrets (for use in a pre-commit hook)."""
    from devkit.security.precommit import run_precommit_secret_scan

    with handle_errors():
        run_precommit_secret_scan(
            scanner=scanner or get_config().tools.secret_scanner,
            config_path=config_file,
            include_untracked=include_untracked,
        )


@app.command("install-hook")
def install_hook(
    hook: Annotated[str, typer.Option("--hook", help="Git hook name")] = "pre-commit",
    scanner: Annotated[
        str | None, typer.Option("--scanner", help="gitleaks or trufflehog (default: config)")
    ] = None,
    config_file: Annotated[
        str | None, typer.Option("--config-file", help="Scanner rules/config file")
    ] = None,
    include_untracked: Annotated[
        bool, typer.Option("--include-untracked", help="Scan untracked files too")
    ] = False,
) -> None:
    """Install a git hook that runs the staged secret scan."""
    from devkit.security.precommit import install_secret_scan_hook

    with handle_errors():
        path = install_secret_scan_hook(
            hook=hook,
            scanner=scanner or get_config().tools.secret_scanner,
            config_path=config_file,
            include_untracked=include_untracked,
        )
    typer.echo(f"🪝 Hook installed: {path}")


@app.command()
def rotate(
    provider: Annotated[str, typer.Argument(help="aws, gcp or vault")],
    secret_id: Annotated[str, typer.Argument(help="Secret identifier")],
    version: Annotated[str | None, typer.Option("--version", help="Version id")] = None,
    region: Annotated[str | None, typer.Option("--region", help="AWS region")] = None,
    project: Annotated[str | None, typer.Option("--project", help="GCP project id")] = None,
    mount: Annotated[str, typer.Option("--mount", help="Vault KV mount")] = "secret",
    metadata: Annotated[
        list[str] | None,
        typer.Option("--set", help="key=value metadata (repeatable)"),
    ] = None,
) -> None:
    """Rotate a secret through a cloud secret manager."""
    from devkit.security.rotate import (
        AwsSecretsManagerAdapter,
        GcpSecretManagerAdapter,
        RotationAdapter,
        VaultAdapter,
        rotate_secret,
    )

    adapter: RotationAdapter
    if provider == "aws":
        adapter = AwsSecretsManagerAdapter(region=region)
    elif provider == "gcp":
        adapter = GcpSecretManagerAdapter(project_id=project)
    elif provider == "vault":
        adapter = VaultAdapter(mount_path=mount)
    else:
        raise typer.BadParameter(f"Unknown provider: {provider}", param_hint="PROVIDER")

    with handle_errors():
        rotate_secret(
            adapter, secret_id, version=version, metadata=parse_pairs(metadata, "--set") or None
        )


# =============================================================================
# Licenses and policy
# =============================================================================


@app.command()
def licenses(
    root: Annotated[
        Path | None, typer.Option("--root", help="Monorepo root", file_okay=False)
    ] = None,
    policy: Annotated[
        Path | None, typer.Option("--policy", help="JSON license policy", dir_okay=False)
    ] = None,
    allowed: Annotated[
        str | None, typer.Option("--allowed", help="Comma-separated allowed licenses")
    ] = None,
    blocked: Annotated[
        str | None, typer.Option("--blocked", help="Comma-separated blocked licenses")
    ] = None,
    ignore: Annotated[
        str | None, typer.Option("--ignore", help="Comma-separated packages to skip")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Enforce the license policy on workspace packages."""
    from devkit.security import enforce_license_policy

    config = get_config().licenses
    with handle_errors():
        result = enforce_license_policy(
            root=root,
            policy_file=policy,
            allowed=split_csv(allowed) or (None if policy else config.allowed),
            blocked=split_csv(blocked) or (None if policy else config.blocked),
            ignore_packages=split_csv(ignore) or (None if policy else config.ignore_packages),
        )

    if json_output:
        echo_json(result.to_dict())
    elif result.violations:
        print_lines("❌ License policy violations:", result.violations)
    else:
        typer.echo(f"✅ {len(result.packages)} package(s) comply with the license policy")
    raise typer.Exit(0 if result.passed else 1)


@app.command()
def compliance(
    dev: Annotated[bool, typer.Option("--dev", help="Include devDependencies")] = False,
    config_file: Annotated[
        Path | None, typer.Option("--config", help="JSON compliance policy", dir_okay=False)
    ] = None,
    output: Annotated[
        Path | None, typer.Option("--output", help="Write a JSON report here")
    ] = None,
    fail_on_violation: Annotated[
        bool, typer.Option("--fail-on-violation", help="Exit 1 on violations")
    ] = False,
) -> None:
    """Check dependency licenses against the compliance policy."""
    from devkit.security.compliance import check_license_compliance

    with handle_errors():
        results = check_license_compliance(
            production=not dev, config_path=config_file, output_path=output
        )

    typer.echo(
        f"\n📋 {results.total} package(s): {results.compliant} compliant, "
        f"{len(results.violations)} violation(s), {len(results.warnings)} warning(s), "
        f"{len(results.unknown)} unknown"
    )
    if results.violations:
        print_lines(
            "❌ Violations:", [f"{v.package} ({v.license}): {v.reason}" for v in results.violations]
        )
    if not results.passed and fail_on_violation:
        raise typer.Exit(1)


@app.command()
def policy(
    policy_file: Annotated[
        Path | None, typer.Option("--policy", help="JSON policy document", dir_okay=False)
    ] = None,
    license_report: Annotated[
        Path | None,
        typer.Option("--license-report", help="JSON license report", dir_okay=False),
    ] = None,
    audit: Annotated[
        bool, typer.Option("--audit/--no-audit", help="Include a dependency audit")
    ] = True,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Gate on license and vulnerability policy."""
    from devkit.security import audit_dependencies, check_policy_compliance

    config = get_config()
    fallback = {
        "allowedLicenses": config.licenses.allowed,
        "blockedLicenses": config.licenses.blocked,
        "maxCriticalVulns": config.vulnerabilities.max_critical,
        "maxHighVulns": config.vulnerabilities.max_high,
    }

    with handle_errors():
        summary = (
            audit_dependencies(
                severity_threshold=config.vulnerabilities.severity_threshold,
                include_dev=config.vulnerabilities.include_dev,
            )
            if audit
            else None
        )
        result = check_policy_compliance(
            policy_file=policy_file,
            license_report_path=license_report,
            audit_summary=summary,
            fallback_policy=fallback,
        )

    if json_output:
        echo_json(result.to_dict())
    elif result.violations:
        print_lines("❌ Policy violations:", result.violations)
    else:
        typer.echo("✅ Policy checks passed")
    raise typer.Exit(0 if result.passed else 1)


@app.command("env-coverage")
def env_coverage(
    required: Annotated[
        str, typer.Option("--required", help="Comma-separated variable names")
    ],
    allow_empty: Annotated[
        bool, typer.Option("--allow-empty", help="Treat empty values as present")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Check that required environment variables are set."""
    from devkit.security import diff_env_coverage

    result = diff_env_coverage(
        split_csv(required) or [], env=os.environ, allow_empty=allow_empty, verbose=not json_output
    )
    if json_output:
        echo_json(result.to_dict())
    raise typer.Exit(1 if result.missing or result.empty else 0)


# =============================================================================
# SBOM and signing
# =============================================================================


@app.command()
def sbom(
    target: Annotated[
        Path | None, typer.Option("--target", help="Directory to analyze", file_okay=False)
    ] = None,
    output: Annotated[Path | None, typer.Option("--output", help="SBOM output path")] = None,
    sbom_format: Annotated[
        str | None, typer.Option("--format", help="cyclonedx-json, cyclonedx-xml or spdx-json")
    ] = None,
    tool: Annotated[
        str | None, typer.Option("--tool", help="syft or cyclonedx (default: config)")
    ] = None,
    no_validate: Annotated[
        bool, typer.Option("--no-validate", help="Skip SBOM validation")
    ] = False,
) -> None:
    """Generate a software bill of materials."""
    from devkit.security.sbom import generate_sbom, validate_sbom

    tools = get_config().tools
    with handle_errors():
        path = generate_sbom(
            target=target,
            output=output,
            sbom_format=sbom_format or tools.sbom_format,
            tool=tool or tools.sbom,
        )
        if not no_validate and not validate_sbom(path):
            raise typer.Exit(1)
    typer.echo(f"📦 SBOM written to: {path}")


@app.command()
def sign(
    artifact: Annotated[Path, typer.Argument(help="File to sign", exists=True, dir_okay=False)],
    tool: Annotated[
        str | None, typer.Option("--tool", help="cosign or gpg (default: config)")
    ] = None,
    key: Annotated[str | None, typer.Option("--key", help="Signing key")] = None,
    signature: Annotated[
        Path | None, typer.Option("--signature", help="Signature path")
    ] = None,
    identity_token: Annotated[
        str | None, typer.Option("--identity-token", help="OIDC token for keyless cosign")
    ] = None,
    annotations: Annotated[
        list[str] | None, typer.Option("--annotation", help="key=value (repeatable)")
    ] = None,
    verify: Annotated[
        bool, typer.Option("--verify", help="Verify an existing signature instead")
    ] = False,
) -> None:
    """Sign an artifact, or verify its signature with --verify."""
    from devkit.security.sign import sign_artifact, verify_artifact

    signer = tool or get_config().tools.signer
    with handle_errors():
        if verify:
            if not verify_artifact(artifact, signature, key, tool=signer):
                typer.echo(f"❌ Signature verification failed for {artifact}")
                raise typer.Exit(1)
            typer.echo(f"✅ Signature verified for {artifact}")
            return

        path = sign_artifact(
            artifact,
            signature_path=signature,
            key_path=key,
            identity_token=identity_token,
            annotations=parse_pairs(annotations, "--annotation") or None,
            tool=signer,
        )
    typer.echo(f"✍️  Signature written to: {path}")


# =============================================================================
# Aggregate check
# =============================================================================


@app.command()
def check(
    scanner: Annotated[
        str, typer.Option("--scanner", help="gitleaks, trufflehog or both")
    ] = "both",
    audit: Annotated[bool, typer.Option("--audit", help="Audit dependencies")] = False,
    licenses_flag: Annotated[
        bool, typer.Option("--licenses", help="Check dependency licenses")
    ] = False,
    license_config: Annotated[
        Path | None,
        typer.Option("--license-config", help="JSON compliance policy", dir_okay=False),
    ] = None,
    fail_on_finding: Annotated[
        bool, typer.Option("--fail-on-finding", help="Exit 1 when anything is found")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Run secret scanning plus optional audit and license checks.

    Exit codes:
        0: No findings (or findings without --fail-on-finding)
        1: Findings with --fail-on-finding
        2: A step could not run
    """
    from devkit.security.compliance import CompliancePolicy, load_compliance_policy
    from devkit.security.report import run_security_check

    with handle_errors():
        if license_config:
            license_policy = load_compliance_policy(license_config)
        else:
            configured = get_config().licenses
            license_policy = CompliancePolicy(
                allowlist=configured.allowed,
                blocklist=configured.blocked,
                warnings=configured.warnings,
                exemptions=configured.exemptions,
            )
        report = run_security_check(
            scanner=scanner,
            run_audit=audit,
            check_licenses=licenses_flag,
            license_policy=license_policy,
        )

    if json_output:
        echo_json(report.to_dict())
    else:
        typer.echo("\n🔐 Security Check Results\n")
        typer.echo(f"  Secrets: {len(report.secrets)}")
        if audit:
            typer.echo(f"  Vulnerabilities: {len(report.vulnerabilities)}")
        if licenses_flag:
            typer.echo(f"  License issues: {len(report.licenses)}")
        if report.errors:
            print_lines("\n⚠️  Steps that could not run:", report.errors)
        typer.echo()

    if report.has_findings and fail_on_finding:
        raise typer.Exit(1)
    if report.errors:
        raise typer.Exit(2)
