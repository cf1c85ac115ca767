"""Git helpers.

Thin wrappers over the git CLI used by release and automation commands.
Read-only queries never raise on a failing git call and return empty
results instead; mutating operations raise CommandError.
"""

from pathlib import Path

from devkit.errors import ValidationError
from devkit.utils.exec import CommandResult, run_command
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

Cwd = str | Path | None


def _lines(output: str) -> list[str]:
    return [line for line in output.strip().split("\n") if line]


def _git(args: list[str], cwd: Cwd = None, check: bool = True) -> CommandResult:
    return run_command("git", args, cwd=cwd, check=check)


def get_current_branch(cwd: Cwd = None) -> str:
    """Name of the checked-out branch."""
    return _git(["rev-parse", "--abbrev-ref", "HEAD"], cwd).stdout.strip()


def is_working_directory_clean(cwd: Cwd = None) -> bool:
    """True when ``git status --porcelain`` reports nothing."""
    result = _git(["status", "--porcelain"], cwd, check=False)
    return not result.stdout.strip()


def get_changed_files(cwd: Cwd = None) -> list[str]:
    """Files with unstaged modifications."""
    return _lines(_git(["diff", "--name-only"], cwd, check=False).stdout)


def stage_files(files: list[str], cwd: Cwd = None) -> None:
    if not files:
        logger.warning("No files to stage")
        return

    _git(["add", *files], cwd)
    logger.success(f"Staged {len(files)} file(s)")


def commit(message: str, options: list[str] | None = None, cwd: Cwd = None) -> None:
    """Create a commit.

    Raises:
        ValidationError: If the message is blank
    """
    if not message.strip():
        raise ValidationError("Commit message cannot be empty", field="message", value=message)

    _git(["commit", "-m", message, *(options or [])], cwd)
    logger.success(f"Committed: {message}")


def get_commit_history(limit: int = 10, cwd: Cwd = None) -> list[str]:
    """Latest commits in ``--oneline`` form."""
    return _lines(_git(["log", "--oneline", f"-{limit}"], cwd, check=False).stdout)


def push(branch: str | None = None, remote: str = "origin", cwd: Cwd = None) -> None:
    """Push a branch (default: current) and set its upstream."""
    branch_name = branch or get_current_branch(cwd)
    _git(["push", "-u", remote, branch_name], cwd)
    logger.success(f"Pushed to {remote}/{branch_name}")


def pull(branch: str | None = None, remote: str = "origin", cwd: Cwd = None) -> None:
    branch_name = branch or get_current_branch(cwd)
    _git(["pull", remote, branch_name], cwd)
    logger.success(f"Pulled from {remote}/{branch_name}")


def create_branch(branch_name: str, start_point: str = "HEAD", cwd: Cwd = None) -> None:
    _git(["checkout", "-b", branch_name, start_point], cwd)
    logger.success(f"Created branch: {branch_name}")


def switch_branch(branch_name: str, cwd: Cwd = None) -> None:
    _git(["checkout", branch_name], cwd)
    logger.success(f"Switched to branch: {branch_name}")


def list_branches(cwd: Cwd = None) -> list[str]:
    """Local and remote branches, markers and padding stripped of whitespace."""
    result = _git(["branch", "-a"], cwd, check=False)
    return [b.strip() for b in result.stdout.strip().split("\n") if b.strip()]


def get_status(cwd: Cwd = None) -> CommandResult:
    """Raw ``git status --porcelain`` result."""
    return _git(["status", "--porcelain"], cwd, check=False)


def list_tags(cwd: Cwd = None) -> list[str]:
    return _lines(_git(["tag", "-l"], cwd, check=False).stdout)


def create_tag(tag_name: str, message: str | None = None, cwd: Cwd = None) -> None:
    """Create a tag, annotated when a message is given."""
    args = ["tag"]
    if message:
        args.extend(["-a", tag_name, "-m", message])
    else:
        args.append(tag_name)

    _git(args, cwd)
    logger.success(f"Created tag: {tag_name}")
