"""Unit tests for release notes, publish checks, flag lint and canary evaluation."""

import math
from pathlib import Path
from unittest.mock import patch

import pytest

from devkit.errors import ValidationError
from devkit.release.canary import (
    CanaryMetrics,
    CanaryThresholds,
    evaluate_canary,
    percent_change,
)
from devkit.release.flags import lint_flags
from devkit.release.notes import parse_changeset, prepare_release_notes, render_release_notes
from devkit.release.publish import sync_version_tags, verify_publish_state
from devkit.utils.exec import CommandResult


class TestReleaseNotes:
    """Tests for changeset parsing and rendering."""

    def test_parse_changeset(self) -> None:
        """Test front matter packages and the summary are extracted."""
        content = '---\n"@acme/api": minor\n"@acme/web": patch\n---\n\nAdd pagination.\n'

        entry = parse_changeset(content)

        assert entry is not None
        assert entry.packages == ["@acme/api", "@acme/web"]
        assert entry.type == "patch"
        assert entry.summary == "Add pagination."

    def test_parse_without_front_matter(self) -> None:
        """Test a file without front matter is skipped."""
        assert parse_changeset("# Changesets\n") is None

    def test_group_by_type(self) -> None:
        """Test grouping by bump type."""
        entries = [
            parse_changeset('---\n"a": minor\n---\nFeature one\n'),
            parse_changeset('---\n"b": minor\n---\n'),
        ]

        markdown = render_release_notes(entries, group_by="type")

        assert markdown == "### minor\n- Feature one\n- (no summary provided)"

    def test_prepare_from_directory(self, tmp_path: Path) -> None:
        """Test every changeset in the directory is collected per package."""
        changesets = tmp_path / ".changeset"
        changesets.mkdir()
        (changesets / "README.md").write_text("# Changesets\n")
        (changesets / "blue-cats.md").write_text('---\n"@acme/api": minor\n---\nAdd search\n')

        notes = prepare_release_notes(changesets)

        assert len(notes.entries) == 1
        assert notes.markdown == "### @acme/api\n- Add search"

    def test_missing_directory(self, tmp_path: Path) -> None:
        """Test a missing directory yields empty notes."""
        assert prepare_release_notes(tmp_path / "none").entries == []

    def test_invalid_grouping(self, tmp_path: Path) -> None:
        """Test an unknown grouping is rejected."""
        with pytest.raises(ValueError, match="Invalid grouping"):
            prepare_release_notes(tmp_path, group_by="author")


class TestPublish:
    """Tests for pre-publish verification and version sync."""

    def test_all_commands_pass(self) -> None:
        """Test commands are split with shell quoting rules."""
        with patch("devkit.release.publish.run_command", return_value=CommandResult(0)) as mock_run:
            result = verify_publish_state(['pnpm run "build all"'])

        assert result.passed
        assert mock_run.call_args.args == ("pnpm", ["run", "build all"])

    def test_bail_on_first_failure(self) -> None:
        """Test remaining commands are skipped after a failure."""
        with patch(
            "devkit.release.publish.run_command", return_value=CommandResult(2)
        ) as mock_run:
            result = verify_publish_state()

        assert result.failures == ["pnpm lint (exit 2)"]
        assert mock_run.call_count == 1

    def test_keep_going(self) -> None:
        """Test every failure is recorded without bailing."""
        with patch(
            "devkit.release.publish.run_command",
            side_effect=[CommandResult(1), CommandResult(0), CommandResult(1)],
        ):
            result = verify_publish_state(bail_on_failure=False)

        assert result.failures == ["pnpm lint (exit 1)", "pnpm build (exit 1)"]

    def test_version_in_sync(self, package_dir: Path) -> None:
        """Test a matching tag and npm version are in sync."""
        with patch(
            "devkit.release.publish.run_command",
            side_effect=[CommandResult(0, "v1.2.3\n"), CommandResult(0, "1.2.3\n")],
        ) as mock_run:
            result = sync_version_tags(
                package_dir / "package.json", tag_prefix="v", registry="https://npm.acme.dev"
            )

        assert result.in_sync
        assert mock_run.call_args.args[1] == [
            "view",
            "@acme/app",
            "version",
            "--registry",
            "https://npm.acme.dev",
        ]

    def test_version_out_of_sync(self, package_dir: Path) -> None:
        """Test a missing tag or unpublished version is reported."""
        with patch(
            "devkit.release.publish.run_command",
            side_effect=[CommandResult(0, ""), CommandResult(1, "", "E404")],
        ):
            result = sync_version_tags(package_dir / "package.json")

        assert not result.in_sync
        assert result.to_dict() == {
            "package_version": "1.2.3",
            "npm_version": None,
            "git_tag_exists": False,
            "in_sync": False,
        }


class TestFlagLint:
    """Tests for feature flag lint."""

    def test_requires_a_config(self) -> None:
        """Test calling without any export raises ValidationError."""
        with pytest.raises(ValidationError):
            lint_flags()

    def test_launch_darkly_issues(self) -> None:
        """Test description, variations, targeting and fallthrough checks."""
        config = {
            "flags": [
                {
                    "key": "new-checkout",
                    "variations": [True],
                    "tags": ["checkout"],
                    "environments": {"production": {"on": True}},
                },
                {"variations": [True, False]},
            ]
        }

        result = lint_flags(launch_darkly=config, required_tags=["team"])

        assert not result.valid
        assert result.total_flags == 2
        assert result.issues == [
            "Flag new-checkout is missing a description",
            "Flag new-checkout is missing required tags: team",
            "Flag new-checkout should define at least two variations",
            "Flag new-checkout environment production is permanently on without targeting rules",
            "Flag new-checkout environment production is missing a fallthrough variation",
            "LaunchDarkly flag missing key",
        ]

    def test_launch_darkly_dead_flags(self) -> None:
        """Test archived, fully off and unreferenced flags are dead."""
        healthy = {
            "description": "d",
            "variations": [True, False],
            "fallthrough": {"variation": 0},
            "environments": {"production": {"on": True, "rules": [{"id": 1}]}},
        }
        config = {
            "flags": [
                {**healthy, "key": "used"},
                {**healthy, "key": "archived", "archived": True},
                {**healthy, "key": "off", "environments": {"production": {"on": False}}},
                {**healthy, "key": "forgotten"},
            ]
        }

        result = lint_flags(launch_darkly=config, referenced_flags=["used", "archived", "off"])

        assert result.valid
        assert result.dead_flags == ["archived", "forgotten", "off"]

    def test_config_cat(self) -> None:
        """Test ConfigCat flags need a defaultValue and rules."""
        config = {
            "flags": {
                "darkMode": {"description": "Dark UI", "defaultValue": False},
                "beta": {
                    "description": "Beta",
                    "defaultValue": False,
                    "percentageRules": [{"percentage": 10}],
                    "isArchived": True,
                },
                "legacy": {"description": "Legacy", "targetingRules": [{}]},
            }
        }

        result = lint_flags(config_cat=config)

        assert result.issues == [
            "Flag darkMode has no targeting or percentage rules defined",
            "Flag legacy must define a defaultValue",
        ]
        assert result.dead_flags == ["beta"]
        assert result.total_flags == 3


class TestCanary:
    """Tests for canary evaluation."""

    def test_percent_change(self) -> None:
        """Test relative change including a zero baseline."""
        assert percent_change(3.0, 2.0) == 50.0
        assert percent_change(0.0, 0.0) == 0.0
        assert percent_change(1.0, 0.0) == math.inf

    def test_metrics_from_camel_case(self) -> None:
        """Test camelCase metric documents are accepted."""
        metrics = CanaryMetrics.from_dict({"errorRate": 0.5, "latencyP95": 120, "requestCount": 900})

        assert (metrics.error_rate, metrics.latency_p95, metrics.request_count) == (0.5, 120, 900)

    def test_healthy(self) -> None:
        """Test metrics within every threshold are healthy."""
        result = evaluate_canary(
            CanaryMetrics(0.5, latency_p95=120, request_count=5000),
            thresholds=CanaryThresholds(max_error_rate=1, max_latency_p95=200, min_requests=1000),
        )

        assert result.healthy
        assert result.reasons == []

    def test_threshold_breaches(self) -> None:
        """Test volume, error rate and latency breaches are all reported."""
        result = evaluate_canary(
            CanaryMetrics(2.5, latency_p95=250, latency_p99=900, request_count=500),
            thresholds=CanaryThresholds(
                max_error_rate=1, max_latency_p95=200, max_latency_p99=800, min_requests=1000
            ),
        )

        assert result.reasons == [
            "Insufficient canary request volume: 500 < 1,000",
            "Error rate 2.5% exceeds max 1%",
            "p95 latency 250ms exceeds max 200ms",
            "p99 latency 900ms exceeds max 800ms",
        ]

    def test_baseline_regression(self) -> None:
        """Test regressions relative to the baseline."""
        result = evaluate_canary(
            CanaryMetrics(2.0, latency_p95=150),
            baseline=CanaryMetrics(1.0, latency_p95=100),
            thresholds=CanaryThresholds(max_error_rate_increase=50, max_latency_increase_pct=20),
        )

        assert result.reasons == [
            "Error rate regression 100.00% exceeds allowed 50%",
            "p95 latency regression 50.00% exceeds allowed 20%",
        ]

    def test_invalid_error_rate(self) -> None:
        """Test a missing error rate fails immediately."""
        result = evaluate_canary(CanaryMetrics.from_dict({"latencyP95": 100}))

        assert not result.healthy
        assert result.reasons == ["canary.errorRate is missing or invalid"]

    def test_negative_latency_is_unhealthy(self) -> None:
        """Test negative latency fails the check."""
        result = evaluate_canary(CanaryMetrics(0.1, latency_p95=-5))

        assert not result.healthy
        assert result.reasons == ["canary.latencyP95 cannot be negative"]
