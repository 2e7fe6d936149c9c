"""Read a video's container duration with ffprobe."""

import logging
import math
from pathlib import Path

from .errors import ProbeFailure
from .runner import format_command

logger = logging.getLogger(__name__)


def probe_command(ffprobe: str, path: str | Path) -> list[str]:
    return [
        ffprobe, "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(path),
    ]


def parse_duration(text: str) -> float:
    """Parse ffprobe's bare duration. Unparsable or non-finite gives 0.0."""
    try:
        dur = float(text.strip())
    except ValueError:
        return 0.0
    if not math.isfinite(dur):
        return 0.0
    return max(dur, 0.0)


def probe_duration(runner, ffprobe: str, path: str | Path) -> float:
    """Container duration in seconds.

    Returns 0.0 when ffprobe succeeds but prints nothing usable; callers
    must reject durations <= 0.

    Raises:
        ProbeFailure: ffprobe exited non-zero (or could not start).
    """
    cmd = probe_command(ffprobe, path)
    result = runner.run(cmd)
    if not result.ok:
        raise ProbeFailure(
            f"ffprobe failed: {result.stderr.strip()}",
            command=format_command(cmd),
            stderr=result.stderr,
        )
    duration = parse_duration(result.stdout)
    logger.info("Probed %s: %.3fs", path, duration)
    return duration
