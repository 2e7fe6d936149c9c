"""vibbon.common — shared helpers for paths, names and scratch files.

Contains: ${var} path resolution, random scratch names, output-title
slugging, and best-effort file cleanup.
"""

import logging
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return paths[key]
    return re.sub(r"\$\{(\w+)\}", _replace, text)


# ── Naming ─────────────────────────────────────────────────────────

def random_name(prefix: str = "") -> str:
    """Return prefix followed by 32 random hex chars."""
    return f"{prefix}{uuid.uuid4().hex}"


def default_title(now: datetime | None = None) -> str:
    """Title used when the user leaves it blank: twibbon-<timestamp>-<hex>."""
    now = now or datetime.now(timezone.utc)
    return f"twibbon-{now.strftime('%Y%m%d%H%M%S%f')}-{random_name()}"


def output_stem(title: str) -> str:
    """Map a display title to a safe output file stem.

    ASCII letters, digits, '-' and '_' are kept; every other character
    (spaces, path separators, non-ASCII) becomes '-'.
    """
    stem = "".join(
        c if (c.isascii() and c.isalnum()) or c in "-_" else "-"
        for c in title.strip()
    )
    return stem or "output"


# ── Scratch files ──────────────────────────────────────────────────

def file_size(path: str | Path) -> int:
    """Size in bytes, or 0 if the file does not exist."""
    try:
        return Path(path).stat().st_size
    except OSError:
        return 0


def remove_quietly(path: str | Path | None) -> None:
    """Delete a scratch file, ignoring errors. Cleanup never escalates."""
    if path is None:
        return
    try:
        Path(path).unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove %s: %s", path, e)
