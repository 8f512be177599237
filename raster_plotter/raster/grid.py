"""Grid builder -- raster samples to a binary occupancy grid.

A cell is *occupied* (1) when the pixel's luma is strictly below the
threshold::

    lum = 0.299 R + 0.587 G + 0.114 B
    cell = 1 if lum < threshold else 0

The grid has exactly the raster's sampled dimensions.  Alpha is ignored
here; callers that need transparent pixels treated as paper flatten the
raster onto white first (see ``image_io.load_raster``).

Malformed input (wrong rank, zero size) degrades to an empty ``0 x 0``
grid instead of failing the pipeline.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 128

# ITU-R BT.601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


@dataclass(frozen=True)
class OccupancyGrid:
    """Immutable binary grid, shape ``(height, width)``, values 0/1.

    Parameters
    ----------
    cells : np.ndarray
        ``uint8`` array indexed ``cells[y, x]``.  Marked read-only on
        construction.
    """

    cells: np.ndarray

    def __post_init__(self) -> None:
        if self.cells.ndim != 2:
            raise ValueError(
                f"OccupancyGrid needs a 2-D array, got shape {self.cells.shape}"
            )
        self.cells.setflags(write=False)

    @property
    def width(self) -> int:
        return int(self.cells.shape[1])

    @property
    def height(self) -> int:
        return int(self.cells.shape[0])

    @classmethod
    def empty(cls) -> OccupancyGrid:
        return cls(np.zeros((0, 0), dtype=np.uint8))

    @classmethod
    def from_rows(cls, rows: list[list[int]]) -> OccupancyGrid:
        """Build a grid from nested ``rows[y][x]`` lists of 0/1."""
        if not rows:
            return cls.empty()
        arr = (np.asarray(rows) != 0).astype(np.uint8)
        return cls(arr)


def coerce_threshold(value: Any, default: int = DEFAULT_THRESHOLD) -> int:
    """Parse a user-supplied threshold.

    Integers pass through, floats and numeric strings are truncated
    toward zero.  ``None``, booleans, non-numeric and non-finite values
    fall back to *default*.  The result is *not* clamped to [0, 255].
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, np.integer)):
        return int(value)
    try:
        parsed = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        logger.warning("Non-numeric threshold %r, using %d", value, default)
        return default
    if not math.isfinite(parsed):
        logger.warning("Non-finite threshold %r, using %d", value, default)
        return default
    return int(parsed)


def luminance(samples: np.ndarray) -> np.ndarray:
    """Per-pixel luma of an ``(H, W, 3|4)`` or grey ``(H, W)`` array."""
    arr = np.asarray(samples, dtype=np.float64)
    if arr.ndim == 2:
        return arr
    return arr[..., :3] @ LUMA_WEIGHTS


def build_occupancy_grid(samples: Any, threshold: Any = DEFAULT_THRESHOLD) -> OccupancyGrid:
    """Threshold a raster into an occupancy grid.

    Parameters
    ----------
    samples : array-like
        RGB / RGBA samples in [0, 255], shape ``(H, W, 3)`` or
        ``(H, W, 4)``; a ``(H, W)`` array is treated as grey.
    threshold : int, optional
        Luma threshold; coerced with ``coerce_threshold`` (default 128).

    Returns
    -------
    OccupancyGrid
        Grid with the raster's dimensions; ``0 x 0`` for malformed input.
    """
    t = coerce_threshold(threshold)

    try:
        arr = np.asarray(samples)
    except (TypeError, ValueError) as exc:
        logger.warning("Unreadable raster (%s), using empty grid", exc)
        return OccupancyGrid.empty()

    well_formed = (
        arr.ndim == 2
        or (arr.ndim == 3 and arr.shape[2] in (3, 4))
    )
    if not well_formed or arr.size == 0 or not np.issubdtype(arr.dtype, np.number):
        logger.warning(
            "Malformed raster (shape=%s, dtype=%s), using empty grid",
            arr.shape, arr.dtype,
        )
        return OccupancyGrid.empty()

    cells = (luminance(arr) < t).astype(np.uint8)
    grid = OccupancyGrid(cells)
    logger.debug(
        "Built %dx%d occupancy grid (threshold=%d, filled=%d)",
        grid.width, grid.height, t, int(cells.sum()),
    )
    return grid
