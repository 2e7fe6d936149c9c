"""CLI for composing one video with a template.

The source video is copied into the upload directory first, so the
pipeline's cleanup never touches the user's file.

Usage:
    vibbon compose clip.mp4 --template reuni_391 --title my-video

    # Camera recordings (webm) are transcoded before composing
    vibbon compose take.webm --template reuni_391 --source record

    # Print the filter graph only
    vibbon compose --template reuni_391 --print-graph
"""

import argparse
import mimetypes
import shutil
import sys
from pathlib import Path

from .common import random_name
from .config import ensure_dirs, load_config
from .errors import ProcessFailure, ResourceFailure, ValidationFailure
from .filtergraph import build_filter_graph
from .normalize import GENERIC_MIME, VALID_SOURCES
from .pipeline import ComposeRequest, run_request
from .report import ComposeFailure
from .runner import ProcessRunner


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="vibbon compose",
        description="Compose a video with an overlay template.",
    )
    parser.add_argument(
        "source", nargs="?", default=None,
        help="Path to the source video (not needed with --print-graph)",
    )
    parser.add_argument("--template", required=True, help="Template key")
    parser.add_argument("--title", default="", help="Output title / file stem")
    parser.add_argument(
        "--source-kind", dest="source_kind", default="upload",
        choices=sorted(VALID_SOURCES),
        help="'record' transcodes the input first (webm/mp4)",
    )
    parser.add_argument("--config", default=None, help="Path to YAML config")
    parser.add_argument(
        "--print-graph", action="store_true",
        help="Print the filter graph for the template and exit",
    )
    parsed = parser.parse_args(args)

    config = load_config(parsed.config)
    template = config.registry.lookup(parsed.template)
    if template is None:
        keys = [t.key for t in config.registry.list_all()]
        parser.error(f"Unknown template '{parsed.template}'. Available: {keys}")

    if parsed.print_graph:
        graph, _ = build_filter_graph(config.output, template)
        print(graph.replace(";", ";\n"))
        return

    if parsed.source is None:
        parser.error("A source video is required")
    source = Path(parsed.source)
    if not source.exists():
        raise FileNotFoundError(f"Source video not found: {source}")

    ensure_dirs(config)
    staged = Path(config.upload_dir) / random_name("raw_")
    shutil.copyfile(source, staged)

    mime, _ = mimetypes.guess_type(source.name)
    request = ComposeRequest(
        source_kind=parsed.source_kind,
        template_key=template.key,
        title=parsed.title,
        input_path=staged,
        input_extension=source.suffix.lstrip(".").lower(),
        input_mime=mime or GENERIC_MIME,
    )
    runner = ProcessRunner(
        max_concurrent=config.max_concurrent_encodes,
        timeout=config.process_timeout,
    )

    print(f"Composing {source} with template '{template.key}' "
          f"({len(template.overlays)} overlay(s))...")
    try:
        outcome = run_request(request, config, runner)
    except ValidationFailure as e:
        print(f"Rejected: {e}", file=sys.stderr)
        sys.exit(1)
    except ProcessFailure as e:
        print(f"Failed: {e}\n{e.command}", file=sys.stderr)
        sys.exit(1)
    except ResourceFailure as e:
        print(f"Filesystem error: {e}", file=sys.stderr)
        sys.exit(1)

    if isinstance(outcome, ComposeFailure):
        print("Video generation failed", file=sys.stderr)
        print(outcome.command, file=sys.stderr)
        print("--- filter graph ---", file=sys.stderr)
        print(outcome.graph, file=sys.stderr)
        print(outcome.stderr, file=sys.stderr)
        sys.exit(1)

    print(outcome.command)
    print(f"\nDone: {outcome.output_path}")


if __name__ == "__main__":
    main()
