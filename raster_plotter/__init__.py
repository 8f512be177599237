"""Raster Plotter: image to contour toolpaths for pen plotters and lasers.

Converts a raster image into marching-squares contours and serializes them
as a G-code motion program.

Architecture layers (strict one-way dependency):
    scripts/ → pipeline → {raster, contour, gcode, configs} → results → utils/

Key invariants:
    - Contour geometry in grid space (pixels, +Y down) until emission
    - Device geometry in millimeters, +Y up, origin at the drawing's corner
    - YAML-only configs
    - Every stage returns a value; failures are tagged, never raised past
      the stage wrappers

Subpackages:
    raster: image loading, preview overlay, occupancy grids
    contour: marching-squares extraction and segment stitching
    gcode: G-code generation from polylines
    configs: option coercion and config-file loading
    utils: logging, filesystem, schema validation
"""

__version__ = "1.0.0"

__all__ = ["raster", "contour", "gcode", "configs", "utils", "pipeline", "results"]
