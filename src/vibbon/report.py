"""Classify a composition run as success or failure.

A zero exit is not enough: a bad graph can exit cleanly and leave an
empty or truncated file, so the output must also exist and reach a
minimum size.
"""

import logging
from dataclasses import dataclass

from .common import file_size

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComposeSuccess:
    title: str
    output_path: str
    output_relative_path: str
    command: str


@dataclass(frozen=True)
class ComposeFailure:
    command: str
    graph: str
    stderr: str


def report_outcome(run, title: str, relative_path: str, min_bytes: int = 1000):
    """Map a CompositionRun to ComposeSuccess or ComposeFailure."""
    size = file_size(run.output_path)
    if run.result.ok and size >= min_bytes:
        logger.info("Composed %s (%d bytes)", run.output_path, size)
        return ComposeSuccess(
            title=title,
            output_path=str(run.output_path),
            output_relative_path=relative_path,
            command=run.command,
        )

    logger.warning(
        "Composition failed: exit %s, output %d bytes", run.result.returncode, size,
    )
    return ComposeFailure(command=run.command, graph=run.graph, stderr=run.result.stderr)
