"""vibbon — branded vertical videos from time-scheduled image overlays.

Normalize an uploaded or camera-recorded clip, probe its duration, build
an ffmpeg filter graph that scales it to a fixed vertical frame and
stacks a template's overlays in sequence, then encode the result.
"""
