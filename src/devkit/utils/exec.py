"""Subprocess execution helpers.

Every external tool devkit drives goes through ``run_command``. It
captures output as text and turns a missing executable into the
conventional shell exit code 127 rather than an exception, so callers can
decide whether to retry through ``npx``.
"""

import logging
import os
import re
import shlex
import subprocess
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from devkit.errors import CommandError, ConfigError
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

COMMAND_NOT_FOUND = 127

# Output fragments that mean "the binary is not installed"
MISSING_BINARY_PATTERN = r"not recognized|command not found|ENOENT|could not find"


@dataclass
class CommandResult:
    """Outcome of one external command."""

    code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.code == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        return f"{self.stdout}{self.stderr}"

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "stdout": self.stdout, "stderr": self.stderr}


def run_command(
    command: str,
    args: list[str] | None = None,
    cwd: str | Path | None = None,
    check: bool = True,
    timeout: float | None = None,
    env: dict[str, str] | None = None,
    verbose: bool = False,
    capture: bool = True,
    input_text: str | None = None,
) -> CommandResult:
    """Run an external command and collect its output.

    Args:
        command: Executable name or path
        args: Arguments passed to the executable
        cwd: Working directory (default: current directory)
        check: Raise CommandError on a non-zero exit code
        timeout: Seconds before the command is killed
        env: Extra environment variables layered over os.environ
        verbose: Log the command line at INFO instead of DEBUG
        capture: Capture output; when False the child inherits stdio
        input_text: Text written to the child's stdin

    Returns:
        CommandResult with exit code and captured output

    Raises:
        CommandError: If check is set and the command fails or times out
    """
    argv = [command, *(args or [])]
    command_line = shlex.join(argv)
    logger.log(logging.INFO if verbose else logging.DEBUG, "$ %s", command_line)

    try:
        proc = subprocess.run(
            argv,
            cwd=str(cwd) if cwd else None,
            capture_output=capture,
            text=True,
            timeout=timeout,
            env={**os.environ, **env} if env else None,
            input=input_text,
        )
        result = CommandResult(proc.returncode, proc.stdout or "", proc.stderr or "")
    except FileNotFoundError:
        result = CommandResult(COMMAND_NOT_FOUND, "", f"{command}: command not found")
    except subprocess.TimeoutExpired as e:
        raise CommandError(
            f"Command timed out after {timeout}s: {command_line}",
            command=command_line,
        ) from e
    except OSError as e:
        result = CommandResult(126, "", str(e))

    if check and not result.ok:
        detail = result.stderr.strip() or result.stdout.strip()
        raise CommandError(
            f"Command failed with exit code {result.code}: {detail}",
            command=command_line,
            stderr=result.stderr,
        )

    return result


def is_missing_binary(result: CommandResult, pattern: str = MISSING_BINARY_PATTERN) -> bool:
    """Check whether a failed result means the executable is not installed.

    Successful runs never count, whatever they print. Only stderr is
    searched for the pattern.
    """
    if result.ok:
        return False
    if result.code == COMMAND_NOT_FOUND:
        return True
    return re.search(pattern, result.stderr, re.IGNORECASE) is not None


def run_with_npx_fallback(
    command: str,
    args: list[str],
    package: str | None,
    cwd: str | Path | None = None,
    pattern: str = MISSING_BINARY_PATTERN,
    timeout: float | None = None,
) -> CommandResult:
    """Run a command, retrying through ``npx --yes <package>`` if it is missing.

    Args:
        command: Executable name
        args: Arguments for the executable
        package: npm package providing the executable (None disables retry)
        cwd: Working directory
        pattern: Regex identifying "not installed" output
        timeout: Seconds before each attempt is killed

    Returns:
        Result of the last attempt (never raises on non-zero exit)
    """
    result = run_command(command, args, cwd=cwd, check=False, timeout=timeout)
    if package and is_missing_binary(result, pattern):
        logger.warning("%s not available locally, retrying with npx %s", command, package)
        result = run_command("npx", ["--yes", package, *args], cwd=cwd, check=False, timeout=timeout)
    return result


@contextmanager
def measure(label: str) -> Iterator[None]:
    """Log how long the wrapped block took."""
    start = time.perf_counter()
    yield
    elapsed_ms = int((time.perf_counter() - start) * 1000)
    logger.info("%s completed in %dms", label, elapsed_ms)


def get_env(name: str, default: str | None = None) -> str:
    """Read an environment variable.

    Raises:
        ConfigError: If the variable is unset and no default is given
    """
    value = os.environ.get(name)
    if value is None:
        if default is None:
            raise ConfigError(f"Environment variable {name} is not set", config_key=name)
        return default
    return value
