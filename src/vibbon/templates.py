"""Overlay templates, the catalog of branded frames users can pick from.

A template is an ordered list of overlays. Each overlay is one still
image shown for a time window, scaled and placed according to its mode:

  - Full: stretched to the whole output frame.
  - Band: output width x given height, centered, bottom-aligned.
  - Logo: explicit width (height -1 keeps aspect), top-right with margin.

Positions are ffmpeg overlay expressions (main_w, main_h, w, h) so the
same graph works for overlay images of any size.
"""

from dataclasses import dataclass


# ── Overlay modes ──────────────────────────────────────────────────

DEFAULT_BAND_HEIGHT = 160
DEFAULT_BAND_X = "(main_w-w)/2"
DEFAULT_BAND_Y = "main_h-h"

DEFAULT_LOGO_WIDTH = 220
KEEP_ASPECT = -1
DEFAULT_LOGO_X = "main_w-w-24"
DEFAULT_LOGO_Y = "24"


@dataclass(frozen=True)
class Full:
    pass


@dataclass(frozen=True)
class Band:
    height: int = DEFAULT_BAND_HEIGHT
    x: str | None = None
    y: str | None = None


@dataclass(frozen=True)
class Logo:
    width: int = DEFAULT_LOGO_WIDTH
    height: int = KEEP_ASPECT
    x: str | None = None
    y: str | None = None


OverlayMode = Full | Band | Logo


@dataclass(frozen=True)
class Overlay:
    """One still image composited during [start, end] seconds.

    start < end is expected but not enforced. Reversed windows give a gate
    that is never open.
    """
    image_path: str
    mode: OverlayMode
    start: float
    end: float


@dataclass(frozen=True)
class Template:
    key: str
    title: str
    overlays: tuple[Overlay, ...]


# ── Registry ───────────────────────────────────────────────────────

class TemplateRegistry:
    """Immutable catalog of templates, keyed by template key.

    Built once at startup. Registration order is kept for listing.
    """

    def __init__(self, templates):
        self._templates = tuple(templates)
        self._by_key = {}
        for tpl in self._templates:
            if tpl.key in self._by_key:
                raise ValueError(f"Duplicate template key: '{tpl.key}'")
            self._by_key[tpl.key] = tpl

    def lookup(self, key: str) -> Template | None:
        return self._by_key.get(key)

    def list_all(self) -> tuple[Template, ...]:
        return self._templates

    def __len__(self):
        return len(self._templates)

    def __contains__(self, key):
        return key in self._by_key


BUILTIN_TEMPLATES = (
    Template(
        key="reuni_391",
        title="Reuni SMA 3 Jakarta • 24 Agustus 2025 (3-91)",
        overlays=(
            Overlay(image_path="templates/2d.png", mode=Full(), start=0.0, end=30.0),
        ),
    ),
)


def builtin_registry() -> TemplateRegistry:
    return TemplateRegistry(BUILTIN_TEMPLATES)
