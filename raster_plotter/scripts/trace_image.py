#!/usr/bin/env python3
"""
Trace Image Script.

Trace an image into contours and write a G-code program.

Usage:
    raster-plotter logo.png
    raster-plotter logo.png --threshold 100 --scale 0.5 --preview
    raster-plotter logo.png --use-z --z-up 4 --z-down -0.5 -o outputs/
    raster-plotter logo.png --laser --dry-run
    python -m raster_plotter.scripts.trace_image logo.png --config my_plotter.yaml

Option values given on the command line override the config file.  They
are coerced leniently: a non-numeric value falls back to the config
default with a warning instead of aborting.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from raster_plotter.configs.loader import ConfigError, load_config, with_overrides
from raster_plotter.pipeline import TraceSession
from raster_plotter.raster.image_io import load_raster, save_overlay
from raster_plotter.utils import fs
from raster_plotter.utils.logging_config import (
    install_excepthook,
    push_context,
    setup_logging,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Trace an image into contours and write G-code",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("image", type=str, help="Source image path")
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Configuration file path (default: bundled plotter.yaml)",
    )
    parser.add_argument(
        "--output-dir",
        "-o",
        type=str,
        default=".",
        help="Directory for the G-code and preview files",
    )

    # Trace options
    parser.add_argument(
        "--threshold",
        "-t",
        type=str,
        help="Luminance threshold 0-255 (cell is ink iff luma < threshold)",
    )
    parser.add_argument(
        "--max-size",
        type=int,
        nargs=2,
        metavar=("W", "H"),
        help="Preview box the image is shrunk to fit",
    )

    # Toolpath options (strings; coerced leniently)
    parser.add_argument("--scale", type=str, help="mm per pixel")
    parser.add_argument("--feed", type=str, help="Cutting feed rate (mm/min)")
    parser.add_argument("--travel", type=str, help="Travel feed rate (mm/min)")
    parser.add_argument(
        "--use-z",
        action="store_true",
        default=None,
        help="Raise/lower the tool with G0 Z moves",
    )
    parser.add_argument("--z-up", type=str, help="Tool-up height (mm)")
    parser.add_argument("--z-down", type=str, help="Tool-down height (mm)")
    parser.add_argument(
        "--laser",
        action="store_true",
        default=None,
        help="Laser mode: M3/M5 toggles instead of Z moves",
    )

    # Output
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Also write a PNG with the traced paths overlaid in red",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the G-code to stdout instead of writing a file",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = load_config(args.config)
    except (ConfigError, FileNotFoundError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    log_cfg = dict(cfg.logging)
    if args.log_level:
        log_cfg["log_level"] = args.log_level
    setup_logging(**log_cfg, context={"app": "trace"})
    install_excepthook()

    cfg = with_overrides(
        cfg,
        {
            "scale": args.scale,
            "feed_rate": args.feed,
            "travel_rate": args.travel,
            "use_z_axis": args.use_z,
            "z_up": args.z_up,
            "z_down": args.z_down,
            "laser_mode": args.laser,
        },
    )

    image_path = Path(args.image)
    push_context(image=image_path.name)
    max_size = tuple(args.max_size) if args.max_size else cfg.trace.preview_box

    try:
        samples = load_raster(image_path, max_size=max_size)
    except FileNotFoundError as exc:
        logger.error("%s", exc)
        return 1
    except OSError as exc:
        logger.error("Image load error: %s", exc)
        return 1

    session = TraceSession(threshold=cfg.trace.threshold)
    if args.threshold is not None:
        session.set_threshold(args.threshold)
    traced = session.load(samples)
    if not traced.ok:
        logger.error("%s", session.status)
        return 1

    logger.info(
        "Grid %dx%d, %d segments, %d paths, %d points",
        *traced.grid_size, traced.segment_count, len(traced.paths), traced.point_count,
    )

    out_dir = Path(args.output_dir)
    if args.preview and samples.size:
        save_overlay(samples, traced.paths, out_dir / cfg.output.preview_filename)

    result = session.generate(cfg.toolpath)
    if not result.ok:
        logger.error("%s", session.status)
        return 1

    if args.dry_run:
        print(result.value)
        return 0

    gcode_path = out_dir / cfg.output.gcode_filename
    fs.atomic_write_text(gcode_path, result.value + "\n")
    logger.info("G-code written: %s", gcode_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
