#!/usr/bin/env python3
"""Render a built-in scene with photon mapping.

This script is the command-line entry point of the renderer. It builds one
of the built-in scenes, runs the photon pass, traces the image and writes
a PNG (plus an optional depth image).

Usage:
    python -m examples.render_scene [scene] [options]

Arguments:
    scene               Built-in scene: default, csg or caustics (default: default)

Options:
    --config PATH       YAML file with render settings
    --width WIDTH       Image width in pixels (overrides the config)
    --height HEIGHT     Image height in pixels (overrides the config)
    --workers N         Worker threads (overrides the config)
    --output OUTPUT     Output file path (default: render.png)
    --depth-output PATH Also write the depth plane as a grayscale PNG
    --no-photons        Skip the photon pass (direct lighting and specular only)
    --tone-map METHOD   none, reinhard or exposure (default: none)
    --preview           Show the result in a Matplotlib window
    --log-level LEVEL   Logging level (default: INFO)

Example:
    python -m examples.render_scene caustics --width 320 --height 240 --output caustics.png
"""

from __future__ import annotations

import argparse
import logging
import sys
import time

import taichi as ti

from src.prism.preview.display import TONE_MAP_METHODS

logger = logging.getLogger("render_scene")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a built-in scene with photon mapping.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "scene",
        nargs="?",
        default="default",
        help="Built-in scene name (default: default)",
    )
    parser.add_argument("--config", type=str, default=None, help="YAML file with render settings")
    parser.add_argument("--width", type=int, default=None, help="Image width in pixels")
    parser.add_argument("--height", type=int, default=None, help="Image height in pixels")
    parser.add_argument("--workers", type=int, default=None, help="Worker threads")
    parser.add_argument(
        "--output",
        type=str,
        default="render.png",
        help="Output file path (default: render.png)",
    )
    parser.add_argument("--depth-output", type=str, default=None, help="Depth image output path")
    parser.add_argument("--no-photons", action="store_true", help="Skip the photon pass")
    parser.add_argument(
        "--tone-map",
        choices=TONE_MAP_METHODS,
        default="none",
        help="Tone mapping method (default: none)",
    )
    parser.add_argument("--preview", action="store_true", help="Show the result in a Matplotlib window")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging level (default: INFO)",
    )
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level), format="%(name)s [%(levelname)s] %(message)s")


def init_taichi() -> None:
    """Initialize Taichi, using the GPU if available and the CPU otherwise."""
    try:
        ti.init(arch=ti.gpu)
        logger.info("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu)
        logger.info("Using CPU backend")


def render(args: argparse.Namespace) -> None:
    """Render the selected scene and write the output files."""
    # Lazy imports to allow Taichi initialization first
    from src.prism.core.config import RenderSettings
    from src.prism.core.renderer import Renderer
    from src.prism.preview.export import save_depth_png, save_png_from_array
    from src.prism.scene.builtin import build_scene

    settings = RenderSettings.from_yaml(args.config) if args.config else RenderSettings()
    settings = settings.with_overrides(width=args.width, height=args.height, workers=args.workers)
    if args.no_photons:
        settings = settings.with_overrides(photon_mapping=False)

    scene = build_scene(args.scene)
    renderer = Renderer(scene, settings)

    start_time = time.time()

    def progress_callback(done: int, total: int) -> None:
        elapsed = time.time() - start_time
        logger.debug("Rows %d/%d (%.1f%%) after %.1fs", done, total, 100.0 * done / total, elapsed)

    image = renderer.render(callback=progress_callback)
    save_png_from_array(image, args.output, tone_map=args.tone_map)
    if args.depth_output:
        save_depth_png(renderer.framebuffer.depth_numpy(), args.depth_output)
    logger.info("Total time: %.2fs", time.time() - start_time)

    if args.preview:
        from src.prism.preview.display import show_preview

        show_preview(image, depth=renderer.framebuffer.depth_numpy(), tone_map=args.tone_map)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)
    init_taichi()

    try:
        render(args)
        return 0
    except Exception:
        logger.exception("Rendering failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
