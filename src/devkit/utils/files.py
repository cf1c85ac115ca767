"""File helpers shared by devkit operations."""

import json
import os
import re
from pathlib import Path
from typing import Any

from devkit.errors import FileError

SKIP_DIRS = {"node_modules", ".git"}


def find_files(root: str | Path, pattern: str) -> list[Path]:
    """Recursively find files whose path matches a regex.

    ``node_modules`` and ``.git`` directories are never entered.

    Args:
        root: Directory to search
        pattern: Regex searched against the POSIX path of each file

    Returns:
        Sorted list of matching paths
    """
    regex = re.compile(pattern)
    matches: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in SKIP_DIRS]
        for filename in filenames:
            path = Path(dirpath) / filename
            if regex.search(path.as_posix()):
                matches.append(path)
    return sorted(matches)


def read_json(path: str | Path) -> Any:
    """Read and parse a JSON file.

    Raises:
        FileError: If the file is missing or not valid JSON
    """
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise FileError(f"Failed to read JSON from {path}: {e}", str(path), "read") from e


def write_json(path: str | Path, data: Any, pretty: bool = True) -> None:
    """Write data as JSON with a trailing newline.

    Raises:
        FileError: If the file cannot be written
    """
    text = json.dumps(data, indent=2 if pretty else None)
    try:
        Path(path).write_text(text + "\n", encoding="utf-8")
    except OSError as e:
        raise FileError(f"Failed to write JSON to {path}: {e}", str(path), "write") from e


def path_exists(path: str | Path) -> bool:
    return Path(path).exists()


def get_relative_path(path: str | Path, base: str | Path | None = None) -> str:
    """Path relative to base (default: current directory)."""
    return os.path.relpath(Path(path), Path(base) if base else Path.cwd())


def find_upwards(start: str | Path, name: str, max_levels: int = 10) -> Path | None:
    """Look for ``name`` in ``start`` and its ancestors.

    Args:
        start: Directory to begin from
        name: File or directory name to look for
        max_levels: Number of directories to inspect, including start

    Returns:
        Path to the first match, or None
    """
    current = Path(start).resolve()
    for _ in range(max_levels):
        candidate = current / name
        if candidate.exists():
            return candidate
        if current.parent == current:
            break
        current = current.parent
    return None
