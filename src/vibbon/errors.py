"""Failure kinds raised by the composition pipeline."""


class ValidationFailure(ValueError):
    """Client-attributable problem: bad template key, container, duration."""


class ProcessFailure(RuntimeError):
    """An ffmpeg/ffprobe invocation exited badly or left no usable output.

    Carries the exact command text (and graph, when there is one) so the
    failing invocation can be reproduced by hand.
    """

    def __init__(self, message: str, command: str = "", stderr: str = "",
                 graph: str = ""):
        super().__init__(message)
        self.command = command
        self.stderr = stderr
        self.graph = graph


class ProbeFailure(ProcessFailure):
    """ffprobe exited non-zero while reading the container duration."""


class ResourceFailure(OSError):
    """Filesystem create/write/rename failed. Internal, not shown to users."""
