"""Subcommand dispatcher for vibbon.

Usage:
    vibbon compose    clip.mp4 --template reuni_391 --title my-video
    vibbon templates  [--config vibbon.yaml]
    vibbon serve      [--host 127.0.0.1] [--port 8080]
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="vibbon",
        description="Stamp videos with time-scheduled overlay templates.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("compose", help="Compose one video with a template")
    subparsers.add_parser("templates", help="List available templates")
    subparsers.add_parser("serve", help="Run the web upload form")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "compose":
        from .compose_cli import main as compose_main
        compose_main(remaining)
    elif parsed.command == "templates":
        from .templates_cli import main as templates_main
        templates_main(remaining)
    elif parsed.command == "serve":
        from .serve_cli import main as serve_main
        serve_main(remaining)


if __name__ == "__main__":
    main()
