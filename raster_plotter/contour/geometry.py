"""Geometric primitives shared by the contour stages and the emitter.

All coordinates are in *grid space*: x grows right, y grows down, one unit
per raster pixel.  Boundary points sit on cell-edge midpoints, so they are
fractional (multiples of 0.5 for marching-squares output).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, NamedTuple


class Point(NamedTuple):
    """A 2-D point in grid space."""

    x: float
    y: float


class Segment(NamedTuple):
    """Undirected boundary piece inside one grid cell."""

    start: Point
    end: Point


Polyline = list[Point]
"""Ordered chain of >= 2 points; closed when first == last."""


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned bounds over every point of a polyline set."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float


def compute_bounding_box(paths: Iterable[Iterable[Point]]) -> BoundingBox:
    """Bounds over all points of all *paths*.

    Returns an all-zero box when there are no points at all.
    """
    min_x = min_y = float("inf")
    max_x = max_y = float("-inf")
    for path in paths:
        for x, y in path:
            if x < min_x:
                min_x = x
            if y < min_y:
                min_y = y
            if x > max_x:
                max_x = x
            if y > max_y:
                max_y = y

    if min_x == float("inf"):
        return BoundingBox(0.0, 0.0, 0.0, 0.0)
    return BoundingBox(min_x, min_y, max_x, max_y)
