"""Canary deployment health evaluation against thresholds and a baseline."""

import math
from dataclasses import asdict, dataclass, field
from typing import Any

from devkit.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CanaryMetrics:
    """Metrics observed for a deployment.

    Attributes:
        error_rate: Error percentage (0-100)
        latency_p95: p95 latency in ms
        latency_p99: p99 latency in ms
        request_count: Requests served during the window
    """

    error_rate: float
    latency_p95: float | None = None
    latency_p99: float | None = None
    request_count: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CanaryMetrics":
        """Build from snake_case or camelCase keys."""
        return cls(
            error_rate=data.get("error_rate", data.get("errorRate", math.nan)),
            latency_p95=data.get("latency_p95", data.get("latencyP95")),
            latency_p99=data.get("latency_p99", data.get("latencyP99")),
            request_count=data.get("request_count", data.get("requestCount")),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CanaryThresholds:
    max_error_rate: float | None = None
    max_latency_p95: float | None = None
    max_latency_p99: float | None = None
    max_error_rate_increase: float | None = None
    max_latency_increase_pct: float | None = None
    min_requests: int | None = None


@dataclass
class CanaryCheckResult:
    healthy: bool
    reasons: list[str] = field(default_factory=list)
    canary: CanaryMetrics | None = None
    baseline: CanaryMetrics | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "reasons": self.reasons,
            "canary": self.canary.to_dict() if self.canary else None,
            "baseline": self.baseline.to_dict() if self.baseline else None,
        }


def percent_change(current: float, baseline: float) -> float:
    """Relative change in percent. A rise from zero is infinite."""
    if baseline == 0:
        return 0.0 if current == 0 else math.inf
    return (current - baseline) / baseline * 100


def _validate_metric(name: str, value: float | None, reasons: list[str]) -> bool:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        reasons.append(f"{name} is missing or invalid")
        return False
    if value < 0:
        reasons.append(f"{name} cannot be negative")
        return False
    return True


def _check_thresholds(
    canary: CanaryMetrics, thresholds: CanaryThresholds, reasons: list[str]
) -> None:
    requests = canary.request_count or 0
    if thresholds.min_requests and requests < thresholds.min_requests:
        reasons.append(
            f"Insufficient canary request volume: {requests:,} < {thresholds.min_requests:,}"
        )

    if thresholds.max_error_rate is not None and canary.error_rate > thresholds.max_error_rate:
        reasons.append(
            f"Error rate {canary.error_rate}% exceeds max {thresholds.max_error_rate}%"
        )

    if (
        thresholds.max_latency_p95 is not None
        and canary.latency_p95 is not None
        and canary.latency_p95 > thresholds.max_latency_p95
    ):
        reasons.append(
            f"p95 latency {canary.latency_p95}ms exceeds max {thresholds.max_latency_p95}ms"
        )

    if (
        thresholds.max_latency_p99 is not None
        and canary.latency_p99 is not None
        and canary.latency_p99 > thresholds.max_latency_p99
    ):
        reasons.append(
            f"p99 latency {canary.latency_p99}ms exceeds max {thresholds.max_latency_p99}ms"
        )


def _check_baseline_regression(
    canary: CanaryMetrics,
    baseline: CanaryMetrics | None,
    thresholds: CanaryThresholds,
    reasons: list[str],
) -> None:
    if baseline is None:
        return

    if thresholds.max_error_rate_increase is not None:
        delta = percent_change(canary.error_rate, baseline.error_rate)
        if delta > thresholds.max_error_rate_increase:
            reasons.append(
                f"Error rate regression {delta:.2f}% exceeds allowed "
                f"{thresholds.max_error_rate_increase}%"
            )

    limit = thresholds.max_latency_increase_pct
    if limit is None:
        return

    for label, current, previous in (
        ("p95", canary.latency_p95, baseline.latency_p95),
        ("p99", canary.latency_p99, baseline.latency_p99),
    ):
        if current is None or previous is None:
            continue
        delta = percent_change(current, previous)
        if delta > limit:
            reasons.append(f"{label} latency regression {delta:.2f}% exceeds allowed {limit}%")


def evaluate_canary(
    canary: CanaryMetrics,
    baseline: CanaryMetrics | None = None,
    thresholds: CanaryThresholds | None = None,
) -> CanaryCheckResult:
    """Decide whether a canary is healthy enough to promote.

    An invalid error rate or a negative latency fails the check
    immediately, with the reason recorded. Latencies may be omitted.
    """
    thresholds = thresholds or CanaryThresholds()
    reasons: list[str] = []

    valid = [
        _validate_metric("canary.errorRate", canary.error_rate, reasons),
        _validate_metric("canary.latencyP95", canary.latency_p95 or 0, reasons),
        _validate_metric("canary.latencyP99", canary.latency_p99 or 0, reasons),
    ]
    if not all(valid):
        return CanaryCheckResult(False, reasons, canary, baseline)

    _check_thresholds(canary, thresholds, reasons)
    _check_baseline_regression(canary, baseline, thresholds, reasons)

    healthy = not reasons
    if healthy:
        logger.success("Canary metrics within thresholds")
    else:
        logger.warning("Canary check failed with %d issue(s)", len(reasons))
    return CanaryCheckResult(healthy, reasons, canary, baseline)
