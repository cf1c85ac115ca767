"""Command groups for the devkit CLI.

Each module defines one Typer sub-application that ``devkit.cli`` mounts
under its group name. Helpers shared by the groups live here: access to
the loaded configuration, error-to-exit-code mapping and JSON output.
"""

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import typer

from devkit.config import DevkitConfig
from devkit.errors import ScriptError
from devkit.tools.base import ToolExecutionError, ToolNotAvailableError
from devkit.utils.logging import get_logger

_logger = get_logger("devkit.cli")

# Set by the root callback in devkit.cli
_config: DevkitConfig | None = None


def set_config(config: DevkitConfig | None) -> None:
    """Store the configuration loaded by the root callback."""
    global _config
    _config = config


def get_config() -> DevkitConfig:
    """Configuration for the current run (defaults when none was loaded)."""
    return _config if _config is not None else DevkitConfig()


@contextmanager
def handle_errors() -> Iterator[None]:
    """Turn devkit failures into a logged error and a non-zero exit.

    ScriptError carries its own exit code; tool and input errors exit 1.
    """
    try:
        yield
    except ScriptError as e:
        _logger.error(e.message)
        raise typer.Exit(e.exit_code)
    except (ToolNotAvailableError, ToolExecutionError) as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except (ValueError, FileNotFoundError) as e:
        _logger.error(str(e))
        raise typer.Exit(1)


def echo_json(data: Any) -> None:
    """Print data as indented JSON."""
    typer.echo(json.dumps(data, indent=2, default=str))


def split_csv(value: str | None) -> list[str] | None:
    """Split a comma-separated option value, dropping blanks."""
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_pairs(values: list[str] | None, option: str) -> dict[str, str]:
    """Parse repeated ``key=value`` options into a dict."""
    pairs: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got: {item}", param_hint=option)
        pairs[key] = value
    return pairs


def read_json_file(path: Path) -> Any:
    """Load a JSON option file, exiting with a usage error when it is invalid."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise typer.BadParameter(f"Could not read {path}: {e}") from e


def print_lines(title: str, lines: list[str], bullet: str = "•") -> None:
    """Print a heading followed by an indented list."""
    typer.echo(title)
    for line in lines:
        typer.echo(f"   {bullet} {line}")
