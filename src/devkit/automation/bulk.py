"""Run one command across many repositories with a bounded worker pool."""

import os
import shlex
import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from devkit.utils.exec import run_command
from devkit.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class BulkTaskResult:
    target: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target,
            "exit_code": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
        }


def run_bulk_repo_task(
    command: str,
    targets: list[str | Path],
    concurrency: int | None = None,
    stop_on_error: bool = False,
) -> list[BulkTaskResult]:
    """Run ``command`` inside each target directory.

    Workers pull targets from a shared queue one at a time. With
    stop_on_error, the first failure empties the queue; commands already
    running still finish and are reported.

    Args:
        command: Command line, split with shell quoting rules
        targets: Directories to run in
        concurrency: Worker count (default: CPU count)
        stop_on_error: Stop scheduling new targets after a failure

    Returns:
        Results in completion order
    """
    if not targets:
        return []

    executable, *args = shlex.split(command)
    queue: deque[str | Path] = deque(targets)
    results: list[BulkTaskResult] = []
    lock = threading.Lock()

    def worker() -> None:
        while True:
            try:
                target = queue.popleft()
            except IndexError:
                return

            result = run_command(executable, args, cwd=target, check=False)
            with lock:
                results.append(
                    BulkTaskResult(str(target), result.code, result.stdout, result.stderr)
                )

            if result.ok:
                logger.success(f"Command succeeded in {target}")
                continue

            logger.error("Command failed in %s: %s", target, result.stderr or result.stdout)
            if stop_on_error:
                queue.clear()
                return

    workers = max(1, min(concurrency or os.cpu_count() or 1, len(targets)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(worker) for _ in range(workers)]
        for future in futures:
            future.result()

    return results
