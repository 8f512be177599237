"""Contour extraction -- marching squares over an occupancy grid.

Every interior 2x2 window is a *cell* with corners, clockwise from the
top-left::

    A (TL) ---mAB--- B (TR)
      |                |
     mDA              mBC
      |                |
    D (BL) ---mCD--- C (BR)

The corner values form a 4-bit index ``TL*8 + TR*4 + BR*2 + BL`` that
selects 0, 1 or 2 segments between edge midpoints from ``SEGMENT_TABLE``.

Saddles:
    Indices 5 and 10 (diagonal corners set) emit *both* segments of one
    fixed interpretation; no averaging heuristic is applied.  Output on
    checkerboard patterns is therefore topologically ambiguous.
    This is a known limitation.
"""

from __future__ import annotations

import logging

import numpy as np

from raster_plotter.contour.geometry import Point, Segment
from raster_plotter.raster.grid import OccupancyGrid
from raster_plotter.results import FailureKind, StageResult, contain

logger = logging.getLogger(__name__)

# index -> pairs of edges; edges named by their corner endpoints
SEGMENT_TABLE: dict[int, tuple[tuple[str, str], ...]] = {
    0: (),
    1: (("CD", "DA"),),
    2: (("BC", "CD"),),
    3: (("BC", "DA"),),
    4: (("AB", "BC"),),
    5: (("AB", "DA"), ("BC", "CD")),
    6: (("AB", "CD"),),
    7: (("AB", "DA"),),
    8: (("AB", "DA"),),
    9: (("AB", "CD"),),
    10: (("AB", "BC"), ("CD", "DA")),
    11: (("AB", "BC"),),
    12: (("BC", "DA"),),
    13: (("BC", "CD"),),
    14: (("CD", "DA"),),
    15: (),
}


def cell_index(tl: int, tr: int, br: int, bl: int) -> int:
    """4-bit pattern index of a cell from its corner values (0/1)."""
    return (tl << 3) | (tr << 2) | (br << 1) | bl


def edge_midpoints(x: int, y: int) -> dict[str, Point]:
    """Midpoints of the four edges of the cell whose top-left corner is (x, y)."""
    return {
        "AB": Point(x + 0.5, float(y)),
        "BC": Point(x + 1.0, y + 0.5),
        "CD": Point(x + 0.5, y + 1.0),
        "DA": Point(float(x), y + 0.5),
    }


def cell_segments(x: int, y: int, idx: int) -> list[Segment]:
    """Segments emitted by the cell at (x, y) with pattern *idx*."""
    edges = SEGMENT_TABLE[idx]
    if not edges:
        return []
    mid = edge_midpoints(x, y)
    return [Segment(mid[a], mid[b]) for a, b in edges]


def cell_indices(grid: OccupancyGrid) -> np.ndarray:
    """Pattern index of every cell, shape ``(H-1, W-1)``."""
    g = grid.cells.astype(np.uint8)
    tl = g[:-1, :-1]
    tr = g[:-1, 1:]
    br = g[1:, 1:]
    bl = g[1:, :-1]
    return (tl << 3) | (tr << 2) | (br << 1) | bl


def scan_cells(grid: OccupancyGrid) -> list[Segment]:
    """Scan every cell row-major (y outer, x inner) and collect segments.

    Parameters
    ----------
    grid : OccupancyGrid
        Binary grid.  Grids narrower or shorter than 2 have no cells.

    Returns
    -------
    list[Segment]
        Unordered boundary segments, in scan order.
    """
    if grid.width < 2 or grid.height < 2:
        return []

    indices = cell_indices(grid)
    segments: list[Segment] = []
    # argwhere walks row-major, which preserves the scan order
    for y, x in np.argwhere((indices != 0) & (indices != 15)):
        segments.extend(cell_segments(int(x), int(y), int(indices[y, x])))
    return segments


def extract_segments(grid: OccupancyGrid) -> StageResult[list[Segment]]:
    """Contained extraction stage.

    Returns the segment list, or an empty list plus a ``StageFailure``
    when scanning raises.
    """
    result = contain(FailureKind.EXTRACTION, [], scan_cells, grid)
    if result.ok:
        logger.debug(
            "Extracted %d segments from %dx%d grid",
            len(result.value), grid.width, grid.height,
        )
    return result
