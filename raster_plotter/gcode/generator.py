"""G-code generator -- traced polylines to a motion program.

All coordinate transforms happen **here**: the bounding box of the
polylines being emitted is computed fresh on every call, then each grid
point is mapped to device millimetres::

    x' = (x - min_x) * scale
    y' = (max_y - y) * scale      # raster +Y is down, device +Y is up

so the drawing's lower-left corner lands on the device origin.

Program layout::

    ; Generated by raster_plotter
    G21 ; units = mm
    G90 ; absolute coords

    ; scale: 0.25 mm/px
    F3000
    <per-path blocks, each followed by a blank line>
    ; end

Tool framing per path:
    - laser mode:   ``M5`` off / ``M3`` on (takes precedence over Z)
    - Z axis mode:  ``G0 Z<z_up>`` / ``G0 Z<z_down>``
    - neither:      no engage/disengage lines

Feed rates are written verbatim (mm/min); coordinates and heights always
use three decimals.
"""

from __future__ import annotations

import logging
import math
from io import StringIO
from typing import Iterable

import numpy as np

from raster_plotter.configs.loader import ToolpathOptions
from raster_plotter.contour.geometry import (
    BoundingBox,
    Point,
    Polyline,
    compute_bounding_box,
)
from raster_plotter.results import FailureKind, StageResult, contain

logger = logging.getLogger(__name__)

ERROR_PLACEHOLDER = "; error generating gcode"


class GCodeError(Exception):
    """Raised when G-code generation fails due to invalid input."""

    pass


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _num(value: float) -> str:
    """Plain number for ``F`` words.

    Integral values print without a decimal point; others use the shortest
    positional form (never exponent notation, which controllers reject).
    """
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return np.format_float_positional(value, trim="-")


def to_device(point: Point, bbox: BoundingBox, scale: float) -> tuple[float, float]:
    """Map a grid-space point to device mm (origin-normalized, Y flipped)."""
    x, y = point
    return (x - bbox.min_x) * scale, (bbox.max_y - y) * scale


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class GCodeGenerator:
    """Convert traced polylines to G-code.

    Parameters
    ----------
    options : ToolpathOptions
        Scale, feeds and tool framing.
    """

    def __init__(self, options: ToolpathOptions) -> None:
        self._opts = options

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate(self, paths: Iterable[Polyline]) -> str:
        """Generate a complete program for *paths*.

        Parameters
        ----------
        paths : Iterable[Polyline]
            Polylines in grid space.  Empty polylines are skipped.

        Returns
        -------
        str
            Header, one block per non-empty polyline, end marker.
            Lines are joined with ``\\n``; there is no trailing newline.

        Raises
        ------
        GCodeError
            If a transformed coordinate is not finite.
        """
        paths = [list(p) for p in paths if p]
        bbox = compute_bounding_box(paths)

        buf = StringIO()
        self._write_header(buf)
        for path in paths:
            self._write_path(path, bbox, buf)
        buf.write("; end")

        logger.debug(
            "Emitted %d path blocks (bbox %.3f,%.3f .. %.3f,%.3f)",
            len(paths), bbox.min_x, bbox.min_y, bbox.max_x, bbox.max_y,
        )
        return buf.getvalue()

    # ------------------------------------------------------------------
    # Tool framing
    # ------------------------------------------------------------------

    def _disengage(self, buf: StringIO) -> None:
        if self._opts.laser_mode:
            buf.write("M5\n")
        elif self._opts.use_z_axis:
            buf.write(f"G0 Z{self._opts.z_up:.3f}\n")

    def _engage(self, buf: StringIO) -> None:
        if self._opts.laser_mode:
            buf.write("M3\n")
        elif self._opts.use_z_axis:
            buf.write(f"G0 Z{self._opts.z_down:.3f}\n")

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def _write_header(self, buf: StringIO) -> None:
        buf.write("; Generated by raster_plotter\n")
        buf.write("G21 ; units = mm\n")
        buf.write("G90 ; absolute coords\n")
        buf.write("\n")
        buf.write(f"; scale: {_num(self._opts.scale)} mm/px\n")
        buf.write(f"F{_num(self._opts.travel_rate)}\n")

    def _write_path(self, path: Polyline, bbox: BoundingBox, buf: StringIO) -> None:
        scale = self._opts.scale
        sx, sy = self._checked(to_device(path[0], bbox, scale))

        self._disengage(buf)
        buf.write(f"G0 X{sx:.3f} Y{sy:.3f}\n")
        self._engage(buf)
        buf.write(f"F{_num(self._opts.feed_rate)}\n")
        for point in path[1:]:
            mx, my = self._checked(to_device(point, bbox, scale))
            buf.write(f"G1 X{mx:.3f} Y{my:.3f}\n")
        self._disengage(buf)
        buf.write("\n")

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def _checked(xy: tuple[float, float]) -> tuple[float, float]:
        mx, my = xy
        if not (math.isfinite(mx) and math.isfinite(my)):
            raise GCodeError(f"Non-finite device coordinate ({mx}, {my})")
        return mx, my


def emit_toolpath(
    paths: Iterable[Polyline], options: ToolpathOptions
) -> StageResult[str]:
    """Contained emission stage.

    Returns the program, or the single-line ``ERROR_PLACEHOLDER`` plus a
    ``StageFailure`` -- never a truncated program.
    """
    result = contain(
        FailureKind.EMISSION,
        ERROR_PLACEHOLDER,
        lambda: GCodeGenerator(options).generate(paths),
    )
    if result.ok:
        logger.info(
            "Generated G-code: %d lines", result.value.count("\n") + 1
        )
    return result
