"""Security tooling.

- secrets: repository secret scanning (gitleaks, trufflehog)
- precommit: staged-change scanning and git hook installation
- audit: dependency vulnerability audit
- policy: combined license/vulnerability policy gate
- licenses: workspace package license enforcement
- compliance: dependency license compliance
- env_coverage: required environment variables
- rotate: secret rotation through cloud secret managers
- sbom: SBOM generation and validation
- sign: artifact signing and verification
- report: aggregate security check
"""

from devkit.security.audit import AuditSummary, audit_dependencies
from devkit.security.env_coverage import diff_env_coverage, ensure_env_coverage
from devkit.security.licenses import collect_workspace_licenses, enforce_license_policy
from devkit.security.policy import check_policy_compliance
from devkit.security.secrets import scan_secrets

__all__ = [
    "AuditSummary",
    "audit_dependencies",
    "check_policy_compliance",
    "collect_workspace_licenses",
    "diff_env_coverage",
    "enforce_license_policy",
    "ensure_env_coverage",
    "scan_secrets",
]
