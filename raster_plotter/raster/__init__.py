"""Raster input: image loading, preview overlay and occupancy grids."""

from raster_plotter.raster.grid import (
    OccupancyGrid,
    build_occupancy_grid,
    coerce_threshold,
)
from raster_plotter.raster.image_io import load_raster, render_overlay, save_overlay

__all__ = [
    "OccupancyGrid",
    "build_occupancy_grid",
    "coerce_threshold",
    "load_raster",
    "render_overlay",
    "save_overlay",
]
