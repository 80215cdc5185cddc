"""Command-line interface for the renderer.

By default one frame is rendered and written to stdout as a text (P3)
portable pixel map, so the output can be redirected straight into a file:

    glint > image.ppm
    glint -b > image.ppm          # binary P6
    glint -w                      # interactive window
    glint --scene random --samples 64 --png cover.png

Progress and errors are reported on stderr. The exit code is 0 on success
and 1 on failure; argparse exits with 2 on invalid arguments.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

import taichi as ti

from glint.config import RenderSettings

if TYPE_CHECKING:
    from glint.scene.scene import Scene

logger = logging.getLogger(__name__)

SCENES = ("default", "random", "single")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    defaults = RenderSettings()
    parser = argparse.ArgumentParser(
        prog="glint",
        description="Render a scene of spheres by ray tracing.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-b",
        "--binary",
        action="store_true",
        help="Write a binary (P6) pixel map instead of text (P3)",
    )
    mode.add_argument(
        "-w",
        "--window",
        action="store_true",
        help="Open an interactive preview window instead of writing a file",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write the pixel map to this file instead of stdout",
    )
    parser.add_argument(
        "--png",
        type=str,
        default=None,
        help="Also save the image as a PNG file",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=defaults.width,
        help=f"Image width in pixels (default: {defaults.width})",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=defaults.height,
        help=f"Image height in pixels (default: {defaults.height})",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=defaults.samples_per_pixel,
        help=f"Samples per pixel (default: {defaults.samples_per_pixel})",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=defaults.max_depth,
        help=f"Maximum ray bounces (default: {defaults.max_depth})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=defaults.seed,
        help=f"Random seed (default: {defaults.seed})",
    )
    parser.add_argument(
        "--scene",
        choices=SCENES,
        default="default",
        help="Demo scene to render (default: default)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v for info, -vv for debug)",
    )
    return parser


def configure_logging(verbosity: int) -> None:
    """Send log records to stderr at a level chosen by -v flags."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def init_taichi(arch: str = "cpu") -> None:
    """Initialize Taichi, falling back to the CPU if the GPU is unusable."""
    if arch == "gpu":
        try:
            ti.init(arch=ti.gpu)
            return
        except Exception as e:
            logger.warning("GPU backend unavailable (%s); using CPU", e)
    ti.init(arch=ti.cpu)


def settings_from_args(args: argparse.Namespace) -> RenderSettings:
    """Build validated render settings from parsed arguments.

    Raises:
        ConfigurationError: If any setting is out of range.
    """
    settings = RenderSettings(
        width=args.width,
        height=args.height,
        samples_per_pixel=args.samples,
        max_depth=args.max_depth,
        seed=args.seed,
    )
    settings.validate()
    return settings


def create_scene(name: str, seed: int = 0) -> Scene:
    """Create one of the demo scenes by name."""
    from glint.scene.presets import (
        create_default_scene,
        create_random_scene,
        create_single_sphere_scene,
    )

    if name == "random":
        return create_random_scene(seed)
    if name == "single":
        return create_single_sphere_scene()
    return create_default_scene()


def run(args: argparse.Namespace) -> int:
    """Render according to parsed arguments. Taichi must be initialized.

    Returns:
        The process exit code.
    """
    # Lazy imports so Taichi fields are created after initialization
    from glint.core.integrator import render_with_settings
    from glint.preview.export import save_png, save_ppm, write_ppm
    from glint.preview.interactive import InteractivePreview

    settings = settings_from_args(args)
    scene = create_scene(args.scene, args.seed)

    if args.window:
        if not InteractivePreview.is_display_available():
            print("Error: no display available for the preview window", file=sys.stderr)
            return 1
        preview = InteractivePreview(settings.width, settings.height)
        preview.run(scene, settings)
        return 0

    start_time = time.perf_counter()
    image = render_with_settings(scene, settings)
    elapsed = time.perf_counter() - start_time
    print(
        f"Rendered {settings.width}x{settings.height} at {settings.samples_per_pixel} spp "
        f"in {elapsed:.2f}s",
        file=sys.stderr,
    )

    if args.output is not None:
        save_ppm(image, args.output, binary=args.binary)
        print(f"Saved to: {args.output}", file=sys.stderr)
    else:
        write_ppm(image, sys.stdout.buffer, binary=args.binary)
        sys.stdout.buffer.flush()

    if args.png is not None:
        save_png(image, args.png)
        print(f"Saved to: {args.png}", file=sys.stderr)

    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        init_taichi(args.arch)
        return run(args)
    except Exception as e:
        logger.debug("Render failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
