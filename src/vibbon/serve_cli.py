"""CLI running the Flask upload form.

Usage:
    vibbon serve --host 127.0.0.1 --port 8080 --config vibbon.yaml
"""

import argparse
import logging

from .config import load_config


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="vibbon serve",
        description="Serve the upload/record form and compose on submit.",
    )
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--config", default=None, help="Path to YAML config")
    parser.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parsed = parser.parse_args(args)

    logging.basicConfig(
        level=getattr(logging, parsed.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from .web import create_app

    config = load_config(parsed.config)
    app = create_app(config)
    print(f"FFmpeg: {config.binaries.ffmpeg}")
    print(f"FFprobe: {config.binaries.ffprobe}")
    print(f"Serving at: http://{parsed.host}:{parsed.port}/")
    app.run(host=parsed.host, port=parsed.port, threaded=True)


if __name__ == "__main__":
    main()
