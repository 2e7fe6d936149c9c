"""Locate the ffmpeg and ffprobe executables.

Resolution order per tool:
  1. The executable search path (PATH), with a platform install
     directory (C:\\ffmpeg\\bin on Windows) searched first when it exists.
  2. The name with a '.exe' suffix.
  3. ffmpeg only: the binary bundled by imageio-ffmpeg. imageio-ffmpeg
     does NOT ship ffprobe.
  4. A hardcoded default path, not checked for existence.

A missing binary is not a startup error. Invocations fail later and
surface as process failures.
"""

import functools
import logging
import os
import platform
import shutil
from dataclasses import dataclass
from pathlib import Path

import imageio_ffmpeg

logger = logging.getLogger(__name__)

WINDOWS_INSTALL_DIR = Path("C:\\ffmpeg\\bin")
DEFAULT_FFMPEG = "/usr/bin/ffmpeg"
DEFAULT_FFPROBE = "/usr/bin/ffprobe"


@dataclass(frozen=True)
class Binaries:
    ffmpeg: str
    ffprobe: str

    def missing(self) -> list[str]:
        """Names of tools whose resolved path does not exist on disk."""
        return [
            name for name, path in (("ffmpeg", self.ffmpeg), ("ffprobe", self.ffprobe))
            if not Path(path).exists()
        ]


def _search_path(system: str, env_path: str | None) -> str | None:
    """PATH value to search, with the platform install dir prepended."""
    if system == "Windows" and WINDOWS_INSTALL_DIR.exists():
        return os.pathsep.join(p for p in (str(WINDOWS_INSTALL_DIR), env_path) if p)
    return env_path


def _which(name: str, search_path: str | None) -> str | None:
    return shutil.which(name, path=search_path) or shutil.which(
        f"{name}.exe", path=search_path,
    )


def _bundled_ffmpeg() -> str | None:
    try:
        return imageio_ffmpeg.get_ffmpeg_exe()
    except RuntimeError:
        return None


def locate_binaries(
    system: str | None = None,
    env_path: str | None = None,
) -> Binaries:
    """Resolve ffmpeg/ffprobe paths for this machine.

    Args:
        system: platform.system() value; detected when None.
        env_path: PATH string to search; os.environ["PATH"] when None.

    Returns:
        Binaries with absolute paths, or the hardcoded defaults.
    """
    system = system or platform.system()
    if env_path is None:
        env_path = os.environ.get("PATH")
    search_path = _search_path(system, env_path)

    ffmpeg = _which("ffmpeg", search_path) or _bundled_ffmpeg() or DEFAULT_FFMPEG
    ffprobe = _which("ffprobe", search_path) or DEFAULT_FFPROBE

    logger.info("ffmpeg: %s", ffmpeg)
    logger.info("ffprobe: %s", ffprobe)
    return Binaries(ffmpeg=ffmpeg, ffprobe=ffprobe)


@functools.lru_cache(maxsize=None)
def default_binaries() -> Binaries:
    """Process-wide binaries, resolved at most once."""
    return locate_binaries()
