"""Normalization — turn an accepted upload into the mp4 the compositor reads.

Two paths:
  - record: camera captures (webm/mp4 from MediaRecorder) are always
    transcoded to H.264/AAC mp4 with +faststart. Their containers are
    not reliably seekable or probeable as uploaded.
  - upload: only .mp4 files are accepted, and they are renamed into
    place without re-encoding.

The raw upload is gone after normalize_input returns or raises.
"""

import logging
import os
from pathlib import Path

from .common import file_size, random_name, remove_quietly
from .config import OutputSpec
from .errors import ResourceFailure, ValidationFailure

logger = logging.getLogger(__name__)

SOURCE_UPLOAD = "upload"
SOURCE_RECORD = "record"
VALID_SOURCES = {SOURCE_UPLOAD, SOURCE_RECORD}

GENERIC_MIME = "application/octet-stream"
RECORD_EXTENSIONS = {"webm", "mp4"}


# ── Decision ──────────────────────────────────────────────────────


def needs_transcode(source_kind: str, ext: str, mime: str) -> bool:
    """Decide how an upload gets normalized.

    Returns:
        True for a transcode (record), False for a plain rename (upload).

    Raises:
        ValidationFailure: Unknown source, or container/MIME not accepted.
    """
    ext = ext.lower().lstrip(".")
    mime = mime.lower()

    if source_kind == SOURCE_RECORD:
        mime_ok = "video/webm" in mime or "video/mp4" in mime or mime == GENERIC_MIME
        if ext not in RECORD_EXTENSIONS or not mime_ok:
            raise ValidationFailure("Recording must be WEBM or MP4.")
        return True

    if source_kind == SOURCE_UPLOAD:
        if ext != "mp4" or not ("video/mp4" in mime or mime == GENERIC_MIME):
            raise ValidationFailure("File must be MP4.")
        return False

    raise ValidationFailure(
        f"Unknown source '{source_kind}'. Valid: {sorted(VALID_SOURCES)}"
    )


def transcode_command(ffmpeg: str, src: str | Path, dst: str | Path, spec: OutputSpec) -> list[str]:
    return [
        ffmpeg, "-y",
        "-i", str(src),
        "-c:v", "libx264", "-preset", spec.preset, "-crf", str(spec.crf),
        "-c:a", "aac",
        "-movflags", "+faststart",
        str(dst),
    ]


# ── Execution ─────────────────────────────────────────────────────


def normalize_input(
    runner,
    ffmpeg: str,
    spec: OutputSpec,
    source_kind: str,
    upload_path: str | Path,
    ext: str,
    mime: str,
    work_dir: str | Path,
    min_bytes: int = 1000,
) -> Path:
    """Produce work_dir/vid_<hex>.mp4 from the raw upload.

    Args:
        runner: ProcessRunner (or compatible) used for the transcode.
        ffmpeg: Encoder path.
        spec: Output tuning (preset, crf) for the transcode.
        source_kind: "upload" or "record".
        upload_path: Raw uploaded file. Always removed.
        ext: Uploaded file extension, without the dot.
        mime: Declared MIME type.
        work_dir: Directory for the normalized file.
        min_bytes: Smallest transcode output accepted as real.

    Returns:
        Path of the normalized mp4.

    Raises:
        ValidationFailure: Rejected container/MIME, or the transcode failed.
        ResourceFailure: The rename failed.
    """
    try:
        transcode = needs_transcode(source_kind, ext, mime)
    except ValidationFailure:
        remove_quietly(upload_path)
        raise

    input_path = Path(work_dir) / f"{random_name('vid_')}.mp4"

    if not transcode:
        try:
            os.replace(upload_path, input_path)
        except OSError as e:
            remove_quietly(upload_path)
            raise ResourceFailure(f"Could not move upload into place: {e}") from e
        logger.info("Accepted upload as %s", input_path)
        return input_path

    result = runner.run(transcode_command(ffmpeg, upload_path, input_path, spec))
    remove_quietly(upload_path)

    if not result.ok or file_size(input_path) < min_bytes:
        remove_quietly(input_path)
        logger.warning("Recording transcode failed (exit %s)", result.returncode)
        raise ValidationFailure(f"Could not convert recording to MP4.\n{result.stderr}")

    logger.info("Transcoded recording to %s", input_path)
    return input_path
