"""CLI listing the configured templates.

Usage:
    vibbon templates [--config vibbon.yaml] [--check-images]
"""

import argparse

from .config import load_config
from .template_manifest import validate_template_images


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="vibbon templates",
        description="List available overlay templates.",
    )
    parser.add_argument("--config", default=None, help="Path to YAML config")
    parser.add_argument(
        "--check-images", action="store_true",
        help="Verify every overlay image exists and is readable",
    )
    parsed = parser.parse_args(args)

    config = load_config(parsed.config)
    templates = config.registry.list_all()
    for tpl in templates:
        print(f"{tpl.key:<20} {len(tpl.overlays)} overlay(s)  {tpl.title}")
        for ov in tpl.overlays:
            mode = type(ov.mode).__name__.lower()
            print(f"    {mode:<5} {ov.start:7.3f}s - {ov.end:7.3f}s  {ov.image_path}")

    if parsed.check_images:
        validate_template_images(list(templates))
        print("All overlay images verified.")


if __name__ == "__main__":
    main()
