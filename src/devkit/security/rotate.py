"""Secret rotation through cloud secret managers.

Each provider is a RotationAdapter wrapping its CLI (``aws``, ``gcloud``,
``vault``). rotate_secret runs optional hooks around the adapter call.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from devkit.errors import ScriptError
from devkit.utils.exec import CommandResult, run_command
from devkit.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RotationRequest:
    secret_id: str
    version: str | None = None
    metadata: dict[str, Any] | None = None


@dataclass
class RotationResult:
    provider: str
    secret_id: str
    success: bool
    raw_output: str = ""
    error_output: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "secret_id": self.secret_id,
            "success": self.success,
            "raw_output": self.raw_output,
            "error_output": self.error_output,
        }


RotationHook = Callable[[RotationRequest], None]


class RotationAdapter(ABC):
    """A secret manager that can create a new secret version."""

    name: str = ""

    @abstractmethod
    def rotate(self, request: RotationRequest) -> RotationResult:
        """Rotate one secret."""

    def _result(self, request: RotationRequest, result: CommandResult) -> RotationResult:
        return RotationResult(
            provider=self.name,
            secret_id=request.secret_id,
            success=result.ok,
            raw_output=result.stdout,
            error_output=result.stderr,
        )


class AwsSecretsManagerAdapter(RotationAdapter):
    """``aws secretsmanager rotate-secret``."""

    name = "aws"

    def __init__(self, region: str | None = None) -> None:
        self.region = region

    def rotate(self, request: RotationRequest) -> RotationResult:
        args = ["secretsmanager", "rotate-secret", "--secret-id", request.secret_id]
        if request.version:
            args.extend(["--version-id", request.version])
        if self.region:
            args.extend(["--region", self.region])
        if request.metadata:
            args.extend(["--cli-input-json", json.dumps({"ClientRequestToken": request.metadata})])
        return self._result(request, run_command("aws", args, check=False))


class GcpSecretManagerAdapter(RotationAdapter):
    """``gcloud secrets versions add``.

    A ``payload`` entry in the request metadata becomes the new secret
    value; it is written to a temporary file that is removed afterwards.
    """

    name = "gcp"

    def __init__(self, project_id: str | None = None) -> None:
        self.project_id = project_id

    def rotate(self, request: RotationRequest) -> RotationResult:
        args = ["secrets", "versions", "add", request.secret_id]
        if self.project_id:
            args.extend(["--project", self.project_id])

        temp_path: str | None = None
        try:
            if request.metadata and "payload" in request.metadata:
                payload = request.metadata["payload"]
                body = payload if isinstance(payload, str) else json.dumps(payload)
                fd, temp_path = tempfile.mkstemp(prefix="devkit-rotation-")
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(body)
            args.extend(["--data-file", temp_path or os.devnull])
            return self._result(request, run_command("gcloud", args, check=False))
        finally:
            if temp_path:
                os.remove(temp_path)


class VaultAdapter(RotationAdapter):
    """``vault kv put <mount>/<secret> key=value...``."""

    name = "vault"

    def __init__(self, mount_path: str = "secret") -> None:
        self.mount_path = mount_path

    def rotate(self, request: RotationRequest) -> RotationResult:
        pairs = [
            f"{key}={value if isinstance(value, str) else json.dumps(value)}"
            for key, value in (request.metadata or {}).items()
        ]
        args = ["kv", "put", f"{self.mount_path}/{request.secret_id}", *pairs]
        return self._result(request, run_command("vault", args, check=False))


ADAPTERS: dict[str, type[RotationAdapter]] = {
    "aws": AwsSecretsManagerAdapter,
    "gcp": GcpSecretManagerAdapter,
    "vault": VaultAdapter,
}


def rotate_secret(
    adapter: RotationAdapter,
    secret_id: str,
    version: str | None = None,
    metadata: dict[str, Any] | None = None,
    before: list[RotationHook] | None = None,
    after: list[RotationHook] | None = None,
) -> RotationResult:
    """Rotate a secret, running hooks before and after the provider call.

    Raises:
        ScriptError: If the provider reports failure
    """
    request = RotationRequest(secret_id=secret_id, version=version, metadata=metadata)

    for hook in before or []:
        hook(request)

    result = adapter.rotate(request)

    for hook in after or []:
        hook(request)

    if not result.success:
        raise ScriptError(
            f"Rotation failed for {result.secret_id} via {result.provider}", code="ROTATION_FAILED"
        )

    logger.success(f"Rotated {result.secret_id} using {result.provider}")
    return result
