"""One ffmpeg run that scales, overlays, trims and encodes a normalized input.

The filter graph is passed through a script file rather than the command
line. Each overlay is a still image, looped at a fixed framerate;
-shortest ends the output with the main video.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from .common import random_name, remove_quietly
from .config import OutputSpec
from .errors import ResourceFailure
from .filtergraph import build_filter_graph, output_label
from .runner import ProcessResult, format_command
from .templates import Template

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompositionRun:
    """Raw outcome of the compose invocation, before classification."""
    result: ProcessResult
    output_path: Path
    command: str
    graph: str


def needs_trim(spec: OutputSpec, duration: float) -> bool:
    return spec.allow_trim and duration > spec.max_duration + spec.trim_tolerance


def compose_command(
    ffmpeg: str,
    spec: OutputSpec,
    template: Template,
    input_path: str | Path,
    graph_path: str | Path,
    last_index: int,
    output_path: str | Path,
    trim: bool = False,
) -> list[str]:
    """Full encoder argument list for one composition."""
    cmd = [ffmpeg, "-y", "-i", str(input_path)]
    for ov in template.overlays:
        cmd += ["-loop", "1", "-framerate", str(spec.overlay_framerate), "-i", ov.image_path]
    if trim:
        cmd += ["-t", str(float(spec.max_duration))]
    cmd += [
        "-filter_complex_script", str(graph_path),
        "-c:v", "libx264",
        "-crf", str(spec.crf),
        "-preset", spec.preset,
        "-pix_fmt", "yuv420p",
        "-c:a", "aac",
        "-movflags", "+faststart",
        "-shortest",
        "-map", output_label(last_index),
        # Trailing '?' makes the audio map optional: silent clips still encode.
        "-map", "0:a?",
        str(output_path),
    ]
    return cmd


def compose(
    runner,
    ffmpeg: str,
    spec: OutputSpec,
    template: Template,
    input_path: str | Path,
    duration: float,
    output_path: str | Path,
    scratch_dir: str | Path,
) -> CompositionRun:
    """Render template over input_path into output_path.

    The graph script and the input file are removed whatever happens.

    Raises:
        ResourceFailure: The graph script could not be written.
    """
    trim = needs_trim(spec, duration)
    if trim:
        logger.info("Trimming %.3fs input to %.1fs", duration, spec.max_duration)

    graph, last_index = build_filter_graph(spec, template)
    graph_path = Path(scratch_dir) / f"fc_{random_name()}.txt"
    try:
        try:
            graph_path.write_text(graph)
        except OSError as e:
            raise ResourceFailure(f"Could not write filter graph: {e}") from e

        cmd = compose_command(
            ffmpeg, spec, template, input_path, graph_path, last_index,
            output_path, trim=trim,
        )
        result = runner.run(cmd)
    finally:
        remove_quietly(graph_path)
        remove_quietly(input_path)

    return CompositionRun(
        result=result,
        output_path=Path(output_path),
        command=format_command(cmd),
        graph=graph,
    )
