"""
G-code generation module.

Converts traced polylines to G-code strings with origin normalization,
Y flip, scaling and tool framing.
"""

from raster_plotter.gcode.generator import GCodeError, GCodeGenerator, emit_toolpath

__all__ = ["GCodeError", "GCodeGenerator", "emit_toolpath"]
