"""Logging for devkit commands.

Output goes to stdout in one of three shapes, picked by the global CLI
flags:

- human (default): ``[INFO] message``, coloured when stdout is a terminal
- verbose (``--verbose``): ``[INFO][14:03:07] message``
- json (``--ci``): ``{"level": "INFO", "ts": "...", "msg": "..."}`` per line

Scripts report finished steps with ``logger.success(...)``, a level
between INFO and WARNING shown as ``[✓]``.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TextIO

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

RESET = "\033[0m"
PALETTE = {
    logging.DEBUG: "\033[90m",
    logging.INFO: "\033[36m",
    SUCCESS: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[31m",
}
SHORT_TAGS = {SUCCESS: "✓", logging.WARNING: "WARN"}


class LogMode(Enum):
    HUMAN = "human"
    VERBOSE = "verbose"
    JSON = "json"


class HumanFormatter(logging.Formatter):
    """``[TAG] message`` lines for people reading a terminal."""

    show_time = False

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        tag = f"[{SHORT_TAGS.get(record.levelno, record.levelname)}]"
        if self.use_colors:
            tag = f"{PALETTE.get(record.levelno, RESET)}{tag}{RESET}"
        if self.show_time:
            tag += datetime.now().strftime("[%H:%M:%S]")
        return f"{tag} {record.getMessage()}"


class VerboseFormatter(HumanFormatter):
    """Human output with a wall-clock stamp after the tag."""

    show_time = True


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    Fields attached as ``extra_data`` (see ``DevkitLogger.structured``) are
    merged into the top level of the object.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "level": record.levelname,
            "ts": datetime.now(UTC).isoformat(),
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        entry.update(getattr(record, "extra_data", None) or {})
        return json.dumps(entry, default=str)


class DevkitLogger(logging.Logger):
    def success(self, msg: str, *args: Any, **kwargs: Any) -> None:
        if self.isEnabledFor(SUCCESS):
            self._log(SUCCESS, msg, args, **kwargs)

    def structured(self, level: int, msg: str, **fields: Any) -> None:
        """Log msg with fields that JSON output adds to the entry.

        Human and verbose output show the message only.
        """
        if self.isEnabledFor(level):
            self._log(level, msg, (), extra={"extra_data": fields} if fields else None)


logging.setLoggerClass(DevkitLogger)


def get_logger(name: str = "devkit") -> DevkitLogger:
    """Logger under the ``devkit`` hierarchy; pass ``__name__`` from modules."""
    return logging.getLogger(name)  # type: ignore[return-value]


def setup_logging(
    mode: LogMode = LogMode.HUMAN,
    level: int = logging.INFO,
    stream: TextIO | None = None,
) -> None:
    """Replace the handlers of the ``devkit`` logger.

    Args:
        mode: Output shape
        level: Minimum level emitted
        stream: Destination (default: stdout); colours only when it is a TTY
    """
    out = stream or sys.stdout
    if mode is LogMode.JSON:
        formatter: logging.Formatter = JSONFormatter()
    else:
        colors = bool(getattr(out, "isatty", None) and out.isatty())
        formatter = (VerboseFormatter if mode is LogMode.VERBOSE else HumanFormatter)(colors)

    handler = logging.StreamHandler(out)
    handler.setFormatter(formatter)

    root = logging.getLogger("devkit")
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def configure_from_cli(verbose: bool = False, quiet: bool = False, ci: bool = False) -> None:
    """Apply the global ``--verbose``, ``--quiet`` and ``--ci`` flags.

    ``--ci`` wins over ``--verbose`` for the output shape; ``--quiet`` wins
    over ``--verbose`` for the level.
    """
    if ci:
        mode = LogMode.JSON
    else:
        mode = LogMode.VERBOSE if verbose else LogMode.HUMAN

    if quiet:
        level = logging.WARNING
    else:
        level = logging.DEBUG if verbose else logging.INFO

    setup_logging(mode=mode, level=level)
