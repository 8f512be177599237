"""
Contour tracing: marching-squares extraction and segment stitching.

All geometry is in grid space (x right, y down, one unit per pixel).
"""

from raster_plotter.contour.geometry import (
    BoundingBox,
    Point,
    Polyline,
    Segment,
    compute_bounding_box,
)
from raster_plotter.contour.marching_squares import extract_segments, scan_cells
from raster_plotter.contour.stitcher import join_segments, stitch_segments

__all__ = [
    "BoundingBox",
    "Point",
    "Polyline",
    "Segment",
    "compute_bounding_box",
    "extract_segments",
    "join_segments",
    "scan_cells",
    "stitch_segments",
]
