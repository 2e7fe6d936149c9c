"""Run one compose request: normalize, probe, build graph, compose, report.

Stages run strictly in order for one request; each needs the previous
stage's output. Any stage failing stops the request, and every scratch
file it created is removed on the way out.
"""

import dataclasses
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .common import default_title, file_size, output_stem, random_name, remove_quietly
from .compose import compose
from .config import AppConfig
from .errors import ProbeFailure, ResourceFailure, ValidationFailure
from .normalize import normalize_input
from .probe import probe_duration
from .report import ComposeFailure, ComposeSuccess, report_outcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComposeRequest:
    """One upload, consumed exactly once by run_request."""
    source_kind: str
    template_key: str
    input_path: Path
    input_extension: str
    input_mime: str
    title: str = ""


def run_request(
    request: ComposeRequest,
    config: AppConfig,
    runner,
) -> ComposeSuccess | ComposeFailure:
    """Run one request end to end.

    Returns:
        ComposeSuccess, or ComposeFailure carrying command, graph and stderr.

    Raises:
        ValidationFailure: Unknown template, rejected or undersized upload,
            failed recording transcode, duration <= 0.
        ProbeFailure: ffprobe exited non-zero.
        ResourceFailure: A filesystem write or rename failed.
    """
    template = config.registry.lookup(request.template_key)
    if template is None:
        remove_quietly(request.input_path)
        raise ValidationFailure(f"Unknown template '{request.template_key}'")

    if file_size(request.input_path) < config.min_upload_bytes:
        remove_quietly(request.input_path)
        raise ValidationFailure("Uploaded video is empty or invalid")

    title = request.title.strip() or default_title()
    spec = config.output

    input_path = normalize_input(
        runner, config.binaries.ffmpeg, spec,
        source_kind=request.source_kind,
        upload_path=request.input_path,
        ext=request.input_extension,
        mime=request.input_mime,
        work_dir=config.upload_dir,
        min_bytes=config.min_upload_bytes,
    )

    try:
        duration = probe_duration(runner, config.binaries.ffprobe, input_path)
    except ProbeFailure:
        remove_quietly(input_path)
        raise
    if duration <= 0.0:
        remove_quietly(input_path)
        raise ValidationFailure("Could not read video duration (ffprobe).")

    # Render under a name only this request uses; an existing file with
    # the final name is replaced only once the new one is good.
    stem = output_stem(title)
    file_name = f"{stem}.mp4"
    output_path = Path(config.output_dir) / file_name
    partial_path = Path(config.output_dir) / f"{stem}.{random_name()}.part.mp4"
    run = compose(
        runner, config.binaries.ffmpeg, spec, template,
        input_path=input_path,
        duration=duration,
        output_path=partial_path,
        scratch_dir=config.upload_dir,
    )

    outcome = report_outcome(
        run, title,
        relative_path=f"outputs/{file_name}",
        min_bytes=spec.min_output_bytes,
    )
    if isinstance(outcome, ComposeFailure):
        remove_quietly(partial_path)
        return outcome

    try:
        os.replace(partial_path, output_path)
    except OSError as e:
        remove_quietly(partial_path)
        raise ResourceFailure(f"Could not move output into place: {e}") from e
    return dataclasses.replace(outcome, output_path=str(output_path))
