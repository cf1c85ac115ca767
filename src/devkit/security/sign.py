"""Detached artifact signatures with cosign or gpg."""

from pathlib import Path

from devkit.tools.registry import get_registry
from devkit.utils.logging import get_logger

logger = get_logger(__name__)


def sign_artifact(
    artifact: str | Path,
    signature_path: str | Path | None = None,
    key_path: str | None = None,
    identity_token: str | None = None,
    annotations: dict[str, str] | None = None,
    tool: str = "cosign",
    cwd: str | Path | None = None,
) -> Path:
    """Sign an artifact, writing ``<artifact>.sig`` unless told otherwise.

    Raises:
        ToolExecutionError: If the signing tool fails
    """
    signer = get_registry().get_signer(tool)
    signature = signer.execute(
        Path(artifact),
        signature_path=signature_path,
        key_path=key_path,
        identity_token=identity_token,
        annotations=annotations,
        cwd=cwd,
    )
    logger.success(f"Artifact {artifact} signed using {tool}. Signature: {signature}")
    return signature


def verify_artifact(
    artifact: str | Path,
    signature_path: str | Path | None = None,
    key_path: str | None = None,
    tool: str = "cosign",
    cwd: str | Path | None = None,
) -> bool:
    """Verify an artifact's detached signature.

    Raises:
        FileNotFoundError: If the signature file does not exist
    """
    verified = get_registry().get_signer(tool).verify(
        artifact, signature_path=signature_path, key_path=key_path, cwd=cwd
    )
    if verified:
        logger.success(f"Signature verified for {artifact} using {tool}.")
    return verified
