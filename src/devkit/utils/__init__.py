"""devkit utility modules.

- logging: Standardized logging with human/verbose/JSON modes
- exec: Subprocess execution with npx fallback
- files: File search and JSON helpers
- preflight: External tool availability checks
"""

from devkit.utils.exec import CommandResult, run_command
from devkit.utils.logging import get_logger, setup_logging

__all__ = [
    "CommandResult",
    "get_logger",
    "run_command",
    "setup_logging",
]
