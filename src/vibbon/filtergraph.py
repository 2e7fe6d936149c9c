"""Filter graph builder — scale the base video, then stack overlays.

Pure functions: no I/O, deterministic for a given (OutputSpec, Template).

Input numbering: input 0 is the video, overlay i (1-based, template
order) is input i. Each overlay is composited onto the running result
of all earlier overlays, so every overlay stage has exactly two inputs
and its own time gate.

Commas inside filter arguments (if(), between()) are escaped as '\\,'
so ffmpeg does not read them as filter-chain separators.
"""

from .config import OutputSpec
from .templates import (
    DEFAULT_BAND_X, DEFAULT_BAND_Y, DEFAULT_LOGO_X, DEFAULT_LOGO_Y,
    Band, Full, Logo, Overlay, Template,
)

BASE_LABEL = "base"
SCALE_FLAGS = "flags=fast_bilinear"


# ── Base scaling ──────────────────────────────────────────────────


def base_chain(spec: OutputSpec) -> str:
    """Map input 0 to [base] at exactly width x height.

    crop: scale so the frame is covered (by height when the source is at
    least as wide as the target aspect, else by width), center-crop the
    overflow.
    pad: scale to fit inside, center-pad the rest with black.
    Both finish with setsar=1.
    """
    w, h = spec.width, spec.height
    if spec.fill_mode == "crop":
        ratio = w / h
        return (
            f"[0:v]scale=if(gte(a\\,{ratio})\\,-2\\,{w}):"
            f"if(gte(a\\,{ratio})\\,{h}\\,-2):{SCALE_FLAGS},"
            f"crop={w}:{h}:(iw-{w})/2:(ih-{h})/2,setsar=1[{BASE_LABEL}]"
        )
    return (
        f"[0:v]scale={w}:{h}:force_original_aspect_ratio=decrease:{SCALE_FLAGS},"
        f"pad={w}:{h}:(ow-iw)/2:(oh-ih)/2,setsar=1[{BASE_LABEL}]"
    )


# ── Overlays ──────────────────────────────────────────────────────


def enable_expr(start: float, end: float) -> str:
    """Time gate, true while start <= t <= end. Fixed 3 decimals."""
    return f"between(t\\,{start:.3f}\\,{end:.3f})"


def overlay_geometry(ov: Overlay, spec: OutputSpec) -> tuple[int, int, str, str]:
    """(scale_w, scale_h, x_expr, y_expr) for an overlay's mode."""
    match ov.mode:
        case Full():
            return spec.width, spec.height, "0", "0"
        case Band(height=height, x=x, y=y):
            return spec.width, height, x or DEFAULT_BAND_X, y or DEFAULT_BAND_Y
        case Logo(width=width, height=height, x=x, y=y):
            # height -1 is passed through: ffmpeg derives it from the aspect ratio.
            return width, height, x or DEFAULT_LOGO_X, y or DEFAULT_LOGO_Y
        case _:
            raise TypeError(f"Unknown overlay mode: {ov.mode!r}")


def overlay_chains(
    ov: Overlay, index: int, prev_label: str, spec: OutputSpec,
) -> tuple[list[str], str]:
    """Scale statement and composite statement for overlay number *index*.

    Returns ([scale, composite], output_label).
    """
    scale_w, scale_h, x, y = overlay_geometry(ov, spec)
    scaled = f"ov{index}"
    out = f"v{index}"
    return [
        f"[{index}:v]scale={scale_w}:{scale_h}:{SCALE_FLAGS}[{scaled}]",
        f"[{prev_label}][{scaled}]overlay=shortest=1:x={x}:y={y}"
        f":enable={enable_expr(ov.start, ov.end)}[{out}]",
    ], out


# ── Full graph ────────────────────────────────────────────────────


def build_filter_graph(spec: OutputSpec, template: Template) -> tuple[str, int]:
    """Build the filter_complex script for a template.

    Algorithm:
      1. One base-scaling statement producing [base].
      2. For each overlay in order: scale input i to [ov<i>], composite
         it onto the current label gated by its time window into [v<i>],
         and make [v<i>] the current label.

    Returns:
        (graph, last_index): statements joined with ';' and the number
        of the last overlay applied (0 when there are none).
    """
    chains = [base_chain(spec)]
    prev = BASE_LABEL
    index = 0
    for index, ov in enumerate(template.overlays, start=1):
        statements, prev = overlay_chains(ov, index, prev, spec)
        chains.extend(statements)
    return ";".join(chains), index


def output_label(last_index: int) -> str:
    """Map target for the builder's final stream: [base] or [v<n>]."""
    if last_index == 0:
        return f"[{BASE_LABEL}]"
    return f"[v{last_index}]"
