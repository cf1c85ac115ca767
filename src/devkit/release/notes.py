"""Release notes from pending changesets.

A changeset is a markdown file in ``.changeset/`` with YAML-like front
matter mapping package names to bump types::

    ---
    "@acme/api": minor
    ---
    Add pagination to the list endpoint.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devkit.utils.files import find_files
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

CHANGESET_PATTERN = re.compile(r"^---\n([\s\S]+?)\n---\n([\s\S]*)$")
GROUP_BY_CHOICES = {"package", "type"}


@dataclass
class ReleaseNoteEntry:
    packages: list[str] = field(default_factory=list)
    type: str = "patch"
    summary: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"packages": self.packages, "type": self.type, "summary": self.summary}


@dataclass
class ReleaseNotes:
    entries: list[ReleaseNoteEntry] = field(default_factory=list)
    markdown: str = ""


def parse_changeset(content: str) -> ReleaseNoteEntry | None:
    """Parse one changeset file. Returns None without front matter.

    When several packages are bumped, the entry's type is the last bump
    listed.
    """
    match = CHANGESET_PATTERN.match(content)
    if not match:
        return None

    entry = ReleaseNoteEntry(summary=match.group(2).strip())
    for line in match.group(1).split("\n"):
        line = line.strip()
        if not line:
            continue
        parts = [part.strip() for part in line.replace('"', "").split(":")]
        if len(parts) >= 2 and parts[0] and parts[1]:
            entry.packages.append(parts[0])
            entry.type = parts[1]
    return entry


def render_release_notes(entries: list[ReleaseNoteEntry], group_by: str = "package") -> str:
    groups: dict[str, list[ReleaseNoteEntry]] = {}
    for entry in entries:
        keys = [entry.type] if group_by == "type" else entry.packages
        for key in keys:
            groups.setdefault(key, []).append(entry)

    lines: list[str] = []
    for group, group_entries in groups.items():
        lines.append(f"### {group}")
        lines.extend(f"- {e.summary or '(no summary provided)'}" for e in group_entries)
        lines.append("")
    return "\n".join(lines).strip()


def prepare_release_notes(
    changeset_dir: str | Path | None = None, group_by: str = "package"
) -> ReleaseNotes:
    """Collect pending changesets into grouped markdown.

    Args:
        changeset_dir: Directory of changeset files (default: ./.changeset)
        group_by: "package" or "type"
    """
    if group_by not in GROUP_BY_CHOICES:
        raise ValueError(f"Invalid grouping: {group_by}. Valid: {GROUP_BY_CHOICES}")

    directory = Path(changeset_dir or Path.cwd() / ".changeset")
    if not directory.exists():
        logger.warning("No changesets found to prepare release notes.")
        return ReleaseNotes()

    entries = []
    for path in find_files(directory, r"\.md$"):
        entry = parse_changeset(path.read_text(encoding="utf-8"))
        if entry:
            entries.append(entry)

    notes = ReleaseNotes(entries=entries, markdown=render_release_notes(entries, group_by))
    logger.info("Prepared release notes for %d changeset(s).", len(entries))
    return notes
