"""Template manifest loader — overlay templates declared in YAML.

Follows the same ${var} path resolution as the config file.

Template manifest schema:
  paths:
    assets: "templates"
  templates:
    - key: reuni_391
      title: "Reuni SMA 3 Jakarta"
      overlays:
        - image: "${assets}/2d.png"
          mode: full            # full | band | logo
          start: 0
          end: 30
        - image: "${assets}/logo.png"
          mode: logo
          width: 220            # optional
          height: -1            # optional, -1 keeps aspect
          x: "main_w-w-24"      # optional
          y: "24"               # optional
"""

import logging
from pathlib import Path

import yaml
from PIL import Image, UnidentifiedImageError

from .common import resolve_path_vars
from .templates import Band, Full, Logo, Overlay, Template

logger = logging.getLogger(__name__)


# ── Valid modes and their optional fields ──────────────────────────

MODE_FIELDS = {
    "full": set(),
    "band": {"height", "x", "y"},
    "logo": {"width", "height", "x", "y"},
}

COMMON_FIELDS = {"image", "mode", "start", "end"}


# ── Manifest loading ──────────────────────────────────────────────


def load_template_manifest(manifest_path: str | Path) -> list[Template]:
    """Load and validate a template manifest.

    Processing pipeline:
      1. Parse YAML.
      2. Resolve ${path} variables in overlay image paths.
      3. Validate each template (key, title, overlays) and overlay mode.
      4. Check for duplicate keys.

    Args:
        manifest_path: Path to the YAML template manifest.

    Returns:
        Templates in manifest order.

    Raises:
        ValueError: Missing/invalid fields, unknown mode, duplicate key.
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f) or {}

    if "templates" not in raw:
        raise ValueError("Template manifest: missing required 'templates' field")

    paths = raw.get("paths", {})
    templates = []
    seen_keys = set()
    for i, entry in enumerate(raw["templates"]):
        for field in ("key", "title", "overlays"):
            if field not in entry:
                raise ValueError(f"Template {i}: missing required field '{field}'")

        key = str(entry["key"])
        if key in seen_keys:
            raise ValueError(f"Duplicate template key: '{key}'")
        seen_keys.add(key)

        overlays = tuple(
            _parse_overlay(ov, paths, f"Template {i} ({key}), overlay {j}")
            for j, ov in enumerate(entry["overlays"] or [])
        )
        templates.append(Template(key=key, title=str(entry["title"]), overlays=overlays))

    return templates


def _parse_overlay(entry: dict, paths: dict, prefix: str) -> Overlay:
    for field in ("image", "start", "end"):
        if field not in entry:
            raise ValueError(f"{prefix}: missing required field '{field}'")

    mode_name = entry.get("mode", "full")
    if mode_name not in MODE_FIELDS:
        raise ValueError(
            f"{prefix}: unknown mode '{mode_name}'. Valid: {sorted(MODE_FIELDS)}"
        )

    extra = set(entry) - COMMON_FIELDS - MODE_FIELDS[mode_name]
    if extra:
        raise ValueError(
            f"{prefix}: fields {sorted(extra)} not valid for mode '{mode_name}'"
        )

    start = float(entry["start"])
    end = float(entry["end"])
    if start >= end:
        # Kept as-is: the time gate is simply never open.
        logger.warning("%s: start (%s) is not before end (%s)", prefix, start, end)

    return Overlay(
        image_path=resolve_path_vars(str(entry["image"]), paths),
        mode=_parse_mode(mode_name, entry),
        start=start,
        end=end,
    )


def _parse_mode(mode_name: str, entry: dict):
    opts = {k: entry[k] for k in MODE_FIELDS[mode_name] if k in entry}
    for k in ("x", "y"):
        if k in opts:
            opts[k] = str(opts[k])
    for k in ("width", "height"):
        if k in opts:
            opts[k] = int(opts[k])

    if mode_name == "band":
        return Band(**opts)
    if mode_name == "logo":
        return Logo(**opts)
    return Full()


# ── Image validation ──────────────────────────────────────────────


def validate_template_images(templates: list[Template]) -> None:
    """Check that every overlay image exists and is a readable image.

    Reports all problems at once.

    Raises:
        FileNotFoundError: Lists all missing or unreadable images.
    """
    problems = []
    for tpl in templates:
        for ov in tpl.overlays:
            path = Path(ov.image_path)
            if not path.exists():
                problems.append(f"{tpl.key}: {ov.image_path} (missing)")
                continue
            try:
                with Image.open(path) as img:
                    img.verify()
            except (UnidentifiedImageError, OSError) as e:
                problems.append(f"{tpl.key}: {ov.image_path} ({e})")

    if problems:
        msg = f"{len(problems)} overlay image problem(s):\n"
        for p in problems:
            msg += f"  - {p}\n"
        raise FileNotFoundError(msg)
