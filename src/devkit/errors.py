"""Error hierarchy shared by devkit operations.

Every error carries a machine-readable ``code`` and the process
``exit_code`` the CLI should use when the error reaches the top level.
"""

from typing import Any


class ScriptError(Exception):
    """Base class for devkit operation failures."""

    code = "SCRIPT_ERROR"

    def __init__(self, message: str, code: str | None = None, exit_code: int = 1) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.exit_code = exit_code

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {"code": self.code, "message": self.message, "exit_code": self.exit_code}


class CommandError(ScriptError):
    """An external command exited unsuccessfully."""

    code = "COMMAND_ERROR"

    def __init__(
        self,
        message: str,
        command: str | None = None,
        stderr: str | None = None,
        exit_code: int = 1,
    ) -> None:
        super().__init__(message, exit_code=exit_code)
        self.command = command
        self.stderr = stderr


class FileError(ScriptError):
    """A file could not be read, written, deleted or accessed."""

    code = "FILE_ERROR"
    OPERATIONS = {"read", "write", "delete", "access"}

    def __init__(self, message: str, file_path: str, operation: str = "access") -> None:
        if operation not in self.OPERATIONS:
            raise ValueError(f"Invalid file operation: {operation}. Valid: {self.OPERATIONS}")
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation


class ValidationError(ScriptError):
    """An input value failed validation."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None, value: Any = None) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


class ConfigError(ScriptError):
    """Required configuration is missing or invalid."""

    code = "CONFIG_ERROR"

    def __init__(self, message: str, config_key: str | None = None) -> None:
        super().__init__(message)
        self.config_key = config_key


class NetworkError(ScriptError):
    """A network request failed."""

    code = "NETWORK_ERROR"

    def __init__(self, message: str, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
