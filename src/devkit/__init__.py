"""devkit - Development lifecycle toolkit.

devkit bundles the small scripts a JavaScript/TypeScript monorepo needs
around its day-to-day work: git helpers, lint and test runners, secret
scanning, dependency audits, license policy, SBOM generation, artifact
signing, release preparation, environment bootstrap and operational
checks. Nearly every operation drives an external tool as a subprocess,
parses what it prints and turns the outcome into a small result record.

Core principles:
- Thin glue: external tools do the work, devkit maps flags and output
- Preflight Validation: required binaries checked before running
- CI/CD Compatibility: JSON logging, no prompts, meaningful exit codes
- Tool Agnosticism: scanners, SBOM generators and signers are adapters
"""

__version__ = "0.1.0"
__author__ = "devkit Contributors"
