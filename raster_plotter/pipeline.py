"""Trace pipeline -- raster to polylines to G-code.

Stages (each a pure function of its input plus a small options record)::

    samples --build_occupancy_grid--> grid
            --extract_segments-------> segments
            --stitch_segments--------> polylines
            --emit_toolpath----------> G-code text

``trace`` and ``generate_toolpath`` keep no state between calls.  Callers
that want the "last traced image" behaviour of an interactive tool hold a
``TraceSession``, which owns the cached raster/polylines explicitly and
records a status line plus full diagnostics for every failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from raster_plotter.configs.loader import ToolpathOptions
from raster_plotter.contour.geometry import Polyline
from raster_plotter.contour.marching_squares import extract_segments
from raster_plotter.contour.stitcher import stitch_segments
from raster_plotter.gcode.generator import emit_toolpath
from raster_plotter.raster.grid import (
    DEFAULT_THRESHOLD,
    build_occupancy_grid,
    coerce_threshold,
)
from raster_plotter.results import FailureKind, StageFailure, StageResult

logger = logging.getLogger(__name__)

NO_PATHS_MESSAGE = "No traced paths found. Load an image first."


@dataclass(frozen=True)
class TraceResult:
    """Outcome of tracing one raster.

    Parameters
    ----------
    paths : list[Polyline]
        Stitched polylines (empty when a stage failed).
    grid_size : tuple[int, int]
        ``(width, height)`` of the occupancy grid.
    segment_count : int
        Raw segments produced by extraction.
    failure : StageFailure | None
        First stage failure, if any.
    """

    paths: list[Polyline]
    grid_size: tuple[int, int]
    segment_count: int
    failure: StageFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def point_count(self) -> int:
        return sum(len(p) for p in self.paths)


def trace(samples: Any, threshold: Any = DEFAULT_THRESHOLD) -> TraceResult:
    """Threshold, extract and stitch one raster.

    Failing stages are contained: a failed extraction yields no segments,
    stitching still runs on the empty list, and the first failure is
    reported on the result.
    """
    grid = build_occupancy_grid(samples, threshold)

    extracted = extract_segments(grid)
    stitched = stitch_segments(extracted.value)

    result = TraceResult(
        paths=stitched.value,
        grid_size=(grid.width, grid.height),
        segment_count=len(extracted.value),
        failure=extracted.failure or stitched.failure,
    )
    logger.info(
        "Traced %dx%d grid: %d segments -> %d paths",
        grid.width, grid.height, result.segment_count, len(result.paths),
    )
    return result


def generate_toolpath(
    paths: list[Polyline] | None, options: ToolpathOptions
) -> StageResult[str]:
    """Emit G-code for *paths*.

    ``paths=None`` means nothing was traced yet; that precondition is
    rejected with a user-facing message and nothing is emitted.  An empty
    list is valid and yields a header-only program.
    """
    if paths is None:
        logger.warning(NO_PATHS_MESSAGE)
        return StageResult(
            "", StageFailure(FailureKind.NO_TRACED_PATHS, NO_PATHS_MESSAGE)
        )
    return emit_toolpath(paths, options)


@dataclass
class TraceSession:
    """Caller-owned cache of the last raster and its traced paths.

    Attributes
    ----------
    threshold : int
        Threshold applied on the next (re)trace.
    raster : Any
        Last loaded samples, or ``None``.
    paths : list[Polyline] | None
        Last traced polylines; ``None`` until a trace completes.
    status : str
        Human-readable status of the last action.
    errors : list[str]
        Full diagnostics (tracebacks) of every failure, oldest first.
    """

    threshold: int = DEFAULT_THRESHOLD
    raster: Any = None
    paths: list[Polyline] | None = None
    status: str = ""
    errors: list[str] = field(default_factory=list)

    def load(self, samples: Any) -> TraceResult:
        """Cache a new raster and trace it."""
        self.raster = samples
        result = self._retrace()
        if result.ok:
            self._set_status("Image loaded and traced. Ready to generate G-code.")
        return result

    def set_threshold(self, value: Any) -> TraceResult | None:
        """Change the threshold; re-trace only when a raster is loaded."""
        self.threshold = coerce_threshold(value)
        if self.raster is None:
            return None
        return self._retrace()

    def generate(self, options: ToolpathOptions) -> StageResult[str]:
        """Emit G-code from the cached paths."""
        if self.paths is not None:
            self._set_status("Generating G-code...")
        result = generate_toolpath(self.paths, options)
        if result.ok:
            self._set_status("G-code generated.")
        else:
            self._record(result.failure)
        return result

    # ------------------------------------------------------------------

    def _retrace(self) -> TraceResult:
        result = trace(self.raster, self.threshold)
        self.paths = result.paths
        if result.failure is not None:
            self._record(result.failure)
        else:
            self._set_status(f"Traced {len(result.paths)} paths.")
        return result

    def _record(self, failure: StageFailure) -> None:
        self.errors.append(failure.detail or failure.message)
        self._set_status(failure.message)

    def _set_status(self, msg: str) -> None:
        self.status = msg
        logger.info("[status] %s", msg)
