"""Operations: smoke and health checks, rollout gating, env and IaC tooling."""

from devkit.operations.env_bootstrap import (
    EnvBootstrapResult,
    EnvManifest,
    bootstrap_env_from_manifest,
)
from devkit.operations.iac import IaCValidationReport, PolicyPack, validate_infrastructure
from devkit.operations.log_schemas import LogSchemaReport, verify_log_schemas
from devkit.operations.rollout import RolloutGuardResult, rollout_guard
from devkit.operations.smoke import (
    DeploymentStatus,
    SmokeResult,
    SmokeTarget,
    check_deployment_readiness,
    perform_health_check,
    smoke_services,
)

__all__ = [
    "DeploymentStatus",
    "EnvBootstrapResult",
    "EnvManifest",
    "IaCValidationReport",
    "LogSchemaReport",
    "PolicyPack",
    "RolloutGuardResult",
    "SmokeResult",
    "SmokeTarget",
    "bootstrap_env_from_manifest",
    "check_deployment_readiness",
    "perform_health_check",
    "rollout_guard",
    "smoke_services",
    "validate_infrastructure",
    "verify_log_schemas",
]
