"""Shared test fixtures for vibbon tests."""

import subprocess
from pathlib import Path

import numpy as np
import pytest
import imageio_ffmpeg
from PIL import Image

from vibbon.binaries import Binaries
from vibbon.config import AppConfig, OutputSpec
from vibbon.runner import ProcessResult
from vibbon.templates import builtin_registry

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()

FAKE_BINARIES = Binaries(ffmpeg="/opt/bin/ffmpeg", ffprobe="/opt/bin/ffprobe")


class FakeRunner:
    """Scripted stand-in for ProcessRunner.

    Returns queued results in order (default: exit 0). A successful ffmpeg
    call writes `write_bytes` bytes to its last argument, the output path,
    mimicking an encode. Filter graph scripts are read before the caller
    deletes them.
    """

    def __init__(self, *results, write_bytes=5000):
        self.results = list(results)
        self.write_bytes = write_bytes
        self.calls = []
        self.graphs = []

    def run(self, cmd):
        cmd = [str(a) for a in cmd]
        self.calls.append(cmd)
        if "-filter_complex_script" in cmd:
            script = Path(cmd[cmd.index("-filter_complex_script") + 1])
            self.graphs.append(script.read_text())
        result = self.results.pop(0) if self.results else ProcessResult(returncode=0)
        if result.ok and Path(cmd[0]).name == "ffmpeg" and self.write_bytes:
            Path(cmd[-1]).write_bytes(b"\0" * self.write_bytes)
        return result

    def tools(self):
        return [Path(c[0]).name for c in self.calls]


@pytest.fixture
def app_config(tmp_path):
    """AppConfig with fake binaries and working dirs under tmp_path."""
    config = AppConfig(
        output=OutputSpec(),
        binaries=FAKE_BINARIES,
        registry=builtin_registry(),
        upload_dir=tmp_path / "uploads",
        output_dir=tmp_path / "outputs",
        template_dir=tmp_path / "templates",
    )
    for d in (config.upload_dir, config.output_dir, config.template_dir):
        d.mkdir()
    return config


@pytest.fixture
def raw_upload(app_config):
    """A 5000-byte raw upload in the upload dir."""
    path = app_config.upload_dir / "raw_test"
    path.write_bytes(b"\0" * 5000)
    return path


@pytest.fixture
def source_video(tmp_path):
    """Create a 2-second test video (320x240, 10fps) with audio using ffmpeg."""
    out = tmp_path / "source.mp4"
    subprocess.run(
        [
            _FFMPEG, "-y",
            "-f", "lavfi", "-i", "color=c=blue:s=320x240:d=2:r=10",
            "-f", "lavfi", "-i", "anullsrc=r=44100:cl=mono",
            "-shortest",
            "-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p",
            "-c:a", "aac", "-b:a", "32k",
            str(out),
        ],
        check=True,
        capture_output=True,
    )
    return out


@pytest.fixture
def overlay_png(tmp_path):
    """A 200x100 RGBA PNG: opaque red frame around a transparent middle."""
    rgba = np.zeros((100, 200, 4), dtype=np.uint8)
    rgba[:, :, 0] = 255
    rgba[:10, :, 3] = 255
    rgba[-10:, :, 3] = 255
    path = tmp_path / "overlay.png"
    Image.fromarray(rgba, mode="RGBA").save(path)
    return path


@pytest.fixture
def make_runner():
    """Factory for FakeRunner: make_runner(result1, result2, ..., write_bytes=N)."""
    return FakeRunner
