"""Process-wide configuration, fixed at startup.

Config file schema (every key optional):
  paths:
    data: "/srv/vibbon"
  output:
    width: 720
    height: 1280
    fill_mode: crop        # crop | pad
    crf: 23
    preset: veryfast
    max_duration: 30.0
    allow_trim: true
  limits:
    min_upload_bytes: 1000
    max_concurrent_encodes: 2
    process_timeout: 600
  dirs:
    uploads: "${data}/uploads"
    outputs: "${data}/outputs"
    templates: "${data}/templates"
  templates: "${data}/templates.yaml"   # template manifest; built-ins if absent
"""

from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

from .binaries import Binaries, default_binaries
from .common import resolve_path_vars
from .template_manifest import load_template_manifest
from .templates import TemplateRegistry, builtin_registry

VALID_FILL_MODES = {"crop", "pad"}


@dataclass(frozen=True)
class OutputSpec:
    """Output geometry and encoder tuning. Not configurable per request."""
    width: int = 720
    height: int = 1280
    fill_mode: str = "crop"
    crf: int = 23
    preset: str = "veryfast"
    max_duration: float = 30.0
    allow_trim: bool = True
    # Absorbs ffprobe rounding so clips barely over the limit are not trimmed.
    trim_tolerance: float = 0.5
    overlay_framerate: int = 30
    min_output_bytes: int = 1000

    def __post_init__(self):
        if self.fill_mode not in VALID_FILL_MODES:
            raise ValueError(
                f"Unknown fill_mode '{self.fill_mode}'. Valid: {sorted(VALID_FILL_MODES)}"
            )
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Output size must be positive, got {self.width}x{self.height}"
            )


@dataclass(frozen=True)
class AppConfig:
    output: OutputSpec = field(default_factory=OutputSpec)
    binaries: Binaries = field(default_factory=default_binaries)
    registry: TemplateRegistry = field(default_factory=builtin_registry)
    upload_dir: Path = Path("uploads")
    output_dir: Path = Path("outputs")
    template_dir: Path = Path("templates")
    min_upload_bytes: int = 1000
    max_concurrent_encodes: int = 2
    process_timeout: float | None = 600.0


LIMIT_KEYS = {"min_upload_bytes", "max_concurrent_encodes", "process_timeout"}
DIR_KEYS = {"uploads": "upload_dir", "outputs": "output_dir", "templates": "template_dir"}


def _check_keys(section: dict, valid: set, name: str) -> None:
    unknown = set(section) - valid
    if unknown:
        raise ValueError(f"Config '{name}': unknown keys {sorted(unknown)}")


def load_config(
    config_path: str | Path | None = None,
    binaries: Binaries | None = None,
) -> AppConfig:
    """Build the application config from an optional YAML file.

    Args:
        config_path: YAML config path. None gives all defaults.
        binaries: Pre-resolved binaries. Located once per process when None.

    Raises:
        ValueError: Unknown keys or invalid output settings.
    """
    binaries = binaries or default_binaries()
    if config_path is None:
        return AppConfig(binaries=binaries)

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    paths = raw.get("paths") or {}

    output_raw = raw.get("output") or {}
    _check_keys(output_raw, {f.name for f in fields(OutputSpec)}, "output")
    output = OutputSpec(**output_raw)

    limits = raw.get("limits") or {}
    _check_keys(limits, LIMIT_KEYS, "limits")

    dirs_raw = raw.get("dirs") or {}
    _check_keys(dirs_raw, set(DIR_KEYS), "dirs")
    dirs = {
        DIR_KEYS[k]: Path(resolve_path_vars(str(v), paths))
        for k, v in dirs_raw.items()
    }

    if "templates" in raw:
        manifest = resolve_path_vars(str(raw["templates"]), paths)
        registry = TemplateRegistry(load_template_manifest(manifest))
    else:
        registry = builtin_registry()

    return AppConfig(
        output=output,
        binaries=binaries,
        registry=registry,
        **dirs,
        **limits,
    )


def ensure_dirs(config: AppConfig) -> None:
    """Create the upload, output and template directories."""
    for d in (config.upload_dir, config.output_dir, config.template_dir):
        Path(d).mkdir(parents=True, exist_ok=True)
