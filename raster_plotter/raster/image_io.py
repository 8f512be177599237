"""Image I/O for the tracer: raster loading and preview overlay.

This module provides:
- Image loading with alpha flattened onto white paper
- Fit-to-preview downscaling (never upscaling)
- Red polyline overlay of traced paths for visual feedback

Samples are ``uint8`` RGB arrays, shape ``(H, W, 3)``.  The overlay is
rendered with OpenCV, which works in BGR; conversion happens at the
boundary.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Iterable, Sequence

import cv2
import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

OVERLAY_COLOR_RGB = (255, 0, 0)


def fit_size(
    width: int, height: int, max_width: int, max_height: int
) -> tuple[int, int]:
    """Dimensions after shrinking ``width x height`` into the preview box.

    The ratio is ``min(max_w / w, max_h / h, 1)`` and results are floored,
    so images are never enlarged.
    """
    if width <= 0 or height <= 0:
        return 0, 0
    ratio = min(max_width / width, max_height / height, 1.0)
    return math.floor(width * ratio), math.floor(height * ratio)


def load_raster(
    path: str | Path,
    max_size: tuple[int, int] | None = None,
) -> np.ndarray:
    """Load an image as RGB samples on a white background.

    Parameters
    ----------
    path : str | Path
        Image file (any format Pillow reads).
    max_size : tuple[int, int] | None
        ``(max_width, max_height)`` preview box; ``None`` keeps the
        original size.

    Returns
    -------
    np.ndarray
        RGB samples, shape ``(H, W, 3)``, dtype ``uint8``.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")

    with Image.open(path) as img:
        rgba = img.convert("RGBA")

    # Transparent pixels read as paper, not ink
    paper = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
    flat = Image.alpha_composite(paper, rgba).convert("RGB")

    orig_w, orig_h = flat.size
    if max_size is not None:
        target_w, target_h = fit_size(orig_w, orig_h, *max_size)
        if (target_w, target_h) != (orig_w, orig_h):
            logger.info(
                "Resizing %s from %dx%d to %dx%d",
                path.name, orig_w, orig_h, target_w, target_h,
            )
            flat = flat.resize(
                (max(target_w, 1), max(target_h, 1)), Image.Resampling.LANCZOS
            )

    return np.array(flat, dtype=np.uint8)


def render_overlay(
    samples: np.ndarray,
    paths: Iterable[Sequence[tuple[float, float]]],
    thickness: int = 1,
) -> np.ndarray:
    """Draw traced paths in red over the raster.

    Parameters
    ----------
    samples : np.ndarray
        RGB samples, shape ``(H, W, 3)``, ``uint8``.
    paths : Iterable[Sequence[tuple[float, float]]]
        Polylines in grid space (x, y).  Paths with fewer than two points
        are skipped.
    thickness : int
        Line thickness in pixels.

    Returns
    -------
    np.ndarray
        New RGB image, same shape as *samples*.
    """
    canvas = cv2.cvtColor(np.ascontiguousarray(samples, dtype=np.uint8), cv2.COLOR_RGB2BGR)
    color_bgr = OVERLAY_COLOR_RGB[::-1]
    for path in paths:
        if len(path) < 2:
            continue
        pts = np.round(np.asarray(path, dtype=np.float64)).astype(np.int32).reshape(-1, 1, 2)
        cv2.polylines(canvas, [pts], isClosed=False, color=color_bgr, thickness=thickness)
    return cv2.cvtColor(canvas, cv2.COLOR_BGR2RGB)


def save_overlay(
    samples: np.ndarray,
    paths: Iterable[Sequence[tuple[float, float]]],
    output_path: str | Path,
) -> Path:
    """Render the overlay and write it as PNG; returns the written path."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    overlay = render_overlay(samples, paths)
    if not cv2.imwrite(str(output_path), cv2.cvtColor(overlay, cv2.COLOR_RGB2BGR)):
        raise OSError(f"Failed to write preview image: {output_path}")
    logger.info("Preview saved: %s", output_path)
    return output_path
