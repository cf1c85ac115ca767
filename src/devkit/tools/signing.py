"""Artifact signing adapters (cosign, gpg).

cosign is published on npm as ``@sigstore/cosign`` and is retried through
npx when missing. gpg has no such fallback.
"""

import logging
from abc import abstractmethod
from pathlib import Path

from devkit.tools.base import ToolAdapter, ToolExecutionError

logger = logging.getLogger(__name__)


def default_signature_path(artifact: str | Path) -> str:
    return f"{artifact}.sig"


class Signer(ToolAdapter[Path]):
    """Abstract interface for detached-signature tools."""

    def __init__(self, name: str) -> None:
        super().__init__(name=name, capability="signing")

    @abstractmethod
    def sign_args(
        self,
        artifact: str,
        signature: Path,
        key_path: str | None = None,
        identity_token: str | None = None,
        annotations: dict[str, str] | None = None,
    ) -> list[str]:
        """Arguments that write a detached signature for artifact."""

    @abstractmethod
    def verify_args(self, artifact: str, signature: Path, key_path: str | None = None) -> list[str]:
        """Arguments that verify artifact against signature."""

    def execute(
        self,
        input_path: Path,
        signature_path: str | Path | None = None,
        key_path: str | None = None,
        identity_token: str | None = None,
        annotations: dict[str, str] | None = None,
        cwd: Path | str | None = None,
    ) -> Path:
        """Sign an artifact.

        Args:
            input_path: Artifact to sign
            signature_path: Signature output (default: <artifact>.sig)
            key_path: Signing key (cosign key file or gpg key id)
            identity_token: OIDC identity token for keyless cosign signing
            annotations: cosign annotations
            cwd: Directory relative paths are resolved against

        Returns:
            Resolved signature path

        Raises:
            ToolExecutionError: If signing fails
        """
        base = Path(cwd) if cwd else Path.cwd()
        artifact = str(input_path)
        signature = (base / (signature_path or default_signature_path(artifact))).resolve()
        signature.parent.mkdir(parents=True, exist_ok=True)

        args = self.sign_args(artifact, signature, key_path, identity_token, annotations)
        result = self.run(args, cwd=cwd)
        if not result.ok:
            raise ToolExecutionError(
                self.name,
                f"Artifact signing failed: {result.stderr or result.stdout}",
                exit_code=result.code,
                stderr=result.stderr,
            )

        logger.info("Artifact %s signed using %s. Signature: %s", artifact, self.name, signature)
        return signature

    def verify(
        self,
        artifact: str | Path,
        signature_path: str | Path | None = None,
        key_path: str | None = None,
        cwd: Path | str | None = None,
    ) -> bool:
        """Verify a detached signature.

        Raises:
            FileNotFoundError: If the signature file does not exist
        """
        base = Path(cwd) if cwd else Path.cwd()
        signature = (base / (signature_path or default_signature_path(artifact))).resolve()
        if not signature.exists():
            raise FileNotFoundError(f"Signature file not found: {signature}")

        result = self.run(self.verify_args(str(artifact), signature, key_path), cwd=cwd)
        if not result.ok:
            logger.error("Verification failed: %s", result.stderr or result.stdout)
            return False

        logger.info("Signature verified for %s using %s", artifact, self.name)
        return True


class CosignAdapter(Signer):
    """Signing via Sigstore cosign (https://github.com/sigstore/cosign)."""

    binary = "cosign"
    npx_package = "@sigstore/cosign"
    version_args = ("version",)
    missing_pattern = r"not found|ENOENT|is not recognized|cosign"

    def __init__(self, name: str = "cosign") -> None:
        super().__init__(name=name)

    def sign_args(
        self,
        artifact: str,
        signature: Path,
        key_path: str | None = None,
        identity_token: str | None = None,
        annotations: dict[str, str] | None = None,
    ) -> list[str]:
        args = ["sign-blob", artifact, "--output-signature", str(signature)]
        if key_path:
            args.extend(["--key", key_path])
        if identity_token:
            args.extend(["--identity-token", identity_token])
        for key, value in (annotations or {}).items():
            args.extend(["--annotation", f"{key}={value}"])
        return args

    def verify_args(self, artifact: str, signature: Path, key_path: str | None = None) -> list[str]:
        args = ["verify-blob", artifact, "--signature", str(signature)]
        if key_path:
            args.extend(["--key", key_path])
        return args


class GpgAdapter(Signer):
    """Detached OpenPGP signatures via GnuPG."""

    binary = "gpg"

    def __init__(self, name: str = "gpg") -> None:
        super().__init__(name=name)

    def sign_args(
        self,
        artifact: str,
        signature: Path,
        key_path: str | None = None,
        identity_token: str | None = None,
        annotations: dict[str, str] | None = None,
    ) -> list[str]:
        args = ["--output", str(signature), "--detach-sign", artifact]
        if key_path:
            args.extend(["--default-key", key_path])
        return args

    def verify_args(self, artifact: str, signature: Path, key_path: str | None = None) -> list[str]:
        args = ["--verify", str(signature), artifact]
        if key_path:
            args.extend(["--keyid-format", "long", "--default-key", key_path])
        return args
