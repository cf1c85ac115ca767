"""Release gate combining error budget, freezes, incidents and approvals."""

from dataclasses import dataclass, field
from typing import Any

from devkit.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RolloutGuardResult:
    allow: bool
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"allow": self.allow, "reasons": self.reasons}


def rollout_guard(
    error_budget_remaining: float,
    incidents_open: list[str] | None = None,
    change_freeze: bool = False,
    minimum_approvals: int | None = None,
    approvals_collected: int = 0,
) -> RolloutGuardResult:
    """Decide whether a rollout may proceed. Any reason blocks it."""
    reasons: list[str] = []
    if error_budget_remaining <= 0:
        reasons.append("Error budget exhausted.")
    if change_freeze:
        reasons.append("Org-wide change freeze is active.")
    if incidents_open:
        reasons.append(f"Open incidents detected: {', '.join(incidents_open)}")
    if minimum_approvals and approvals_collected < minimum_approvals:
        reasons.append(
            f"Insufficient rollout approvals ({approvals_collected}/{minimum_approvals})."
        )

    allow = not reasons
    if allow:
        logger.success("Rollout guard checks passed.")
    else:
        logger.warning("Rollout guard blocked release:\n- %s", "\n- ".join(reasons))
    return RolloutGuardResult(allow, reasons)
