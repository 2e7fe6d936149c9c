"""Spawn-and-capture interface for ffmpeg/ffprobe.

Every subprocess the pipeline starts goes through ProcessRunner.run, so
tests can substitute a scripted runner and never touch real processes.
The runner bounds how many subprocesses run at once across concurrent
requests and kills any that outlive the timeout.
"""

import logging
import shlex
import subprocess
import threading
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of one subprocess. returncode is None if it never exited normally."""
    returncode: int | None
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def format_command(cmd: list[str]) -> str:
    """Shell-equivalent text of an argument list, for diagnostics."""
    return shlex.join(str(a) for a in cmd)


class ProcessRunner:
    """Runs argument lists with pipes drained, bounded concurrency and timeout.

    Args:
        max_concurrent: Subprocesses allowed at once. Extra callers wait.
        timeout: Wall-clock seconds before the child is killed. None waits forever.
    """

    def __init__(self, max_concurrent: int = 2, timeout: float | None = 600.0):
        if max_concurrent < 1:
            raise ValueError(f"max_concurrent must be >= 1, got {max_concurrent}")
        self.timeout = timeout
        self._slots = threading.BoundedSemaphore(max_concurrent)

    def run(self, cmd: list[str]) -> ProcessResult:
        cmd = [str(a) for a in cmd]
        logger.debug("run: %s", format_command(cmd))
        with self._slots:
            try:
                proc = subprocess.run(
                    cmd, capture_output=True, timeout=self.timeout,
                )
            except subprocess.TimeoutExpired:
                logger.warning("Killed after %ss: %s", self.timeout, cmd[0])
                return ProcessResult(
                    returncode=None,
                    stderr=f"{cmd[0]} timed out after {self.timeout}s and was killed",
                )
            except OSError as e:
                logger.warning("Could not start %s: %s", cmd[0], e)
                return ProcessResult(returncode=None, stderr=f"Could not start {cmd[0]}: {e}")

        return ProcessResult(
            returncode=proc.returncode,
            stdout=proc.stdout.decode("utf-8", errors="replace"),
            stderr=proc.stderr.decode("utf-8", errors="replace"),
        )
