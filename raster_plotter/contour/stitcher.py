"""Path stitching -- unordered segments to ordered polylines.

Endpoints are matched through a fixed-point key (each coordinate times
10^4, rounded), i.e. two points coincide when they agree to 4 decimal
places.

Algorithm (greedy, deterministic):
    1. Map every endpoint key to its incidences ``(segment, end)`` in
       segment order.
    2. For each unused segment, in input order, start a path
       ``[start, end]`` and mark the segment used.
    3. Walk forward from the tail: take the first unused incidence at the
       tail's key, append that segment's far endpoint, repeat.
    4. Walk backward from the head the same way, prepending.

Tie-break:
    At a junction with more than two incident segments the first unused
    incidence in insertion order wins.  Surplus branches end the current
    path and are picked up later as paths of their own.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import NamedTuple

from raster_plotter.contour.geometry import Point, Polyline, Segment
from raster_plotter.results import FailureKind, StageResult, contain

logger = logging.getLogger(__name__)

KEY_DECIMALS = 4
_KEY_SCALE = 10 ** KEY_DECIMALS

Key = tuple[int, int]


class Incidence(NamedTuple):
    """Segment *segment* touches a key with its start (0) or end (1)."""

    segment: int
    end: int


def endpoint_key(point: Point) -> Key:
    """Fixed-point key used to match coincident endpoints."""
    return (round(point[0] * _KEY_SCALE), round(point[1] * _KEY_SCALE))


def build_incidence_map(segments: list[Segment]) -> dict[Key, list[Incidence]]:
    """Map each endpoint key to its incidences, in insertion order."""
    incidences: dict[Key, list[Incidence]] = defaultdict(list)
    for i, seg in enumerate(segments):
        incidences[endpoint_key(seg[0])].append(Incidence(i, 0))
        incidences[endpoint_key(seg[1])].append(Incidence(i, 1))
    return incidences


def _walk(
    start: Point,
    segments: list[Segment],
    incidences: dict[Key, list[Incidence]],
    used: list[bool],
) -> list[Point]:
    """Follow unused segments from *start*; return the points reached."""
    reached: list[Point] = []
    cur = start
    while True:
        for inc in incidences.get(endpoint_key(cur), ()):
            if not used[inc.segment]:
                used[inc.segment] = True
                cur = segments[inc.segment][1 - inc.end]
                reached.append(cur)
                break
        else:
            return reached


def join_segments(segments: list[Segment]) -> list[Polyline]:
    """Join segments into polylines (raises on malformed input).

    Parameters
    ----------
    segments : list[Segment]
        Unordered segments; each is a pair of points.

    Returns
    -------
    list[Polyline]
        One polyline per chain.  Every segment is consumed by exactly one
        polyline.  Closed chains repeat their first point at the end.
    """
    incidences = build_incidence_map(segments)
    used = [False] * len(segments)
    paths: list[Polyline] = []

    for i, seg in enumerate(segments):
        if used[i]:
            continue
        used[i] = True
        head, tail = Point(*seg[0]), Point(*seg[1])

        forward = _walk(tail, segments, incidences, used)
        backward = _walk(head, segments, incidences, used)

        path = [Point(*p) for p in reversed(backward)]
        path.append(head)
        path.append(tail)
        path.extend(Point(*p) for p in forward)

        if len(path) > 1:
            paths.append(path)

    return paths


def stitch_segments(segments: list[Segment]) -> StageResult[list[Polyline]]:
    """Contained stitching stage.

    Returns the polylines, or an empty list plus a ``StageFailure`` when
    joining raises.
    """
    result = contain(FailureKind.STITCHING, [], join_segments, segments)
    if result.ok:
        logger.debug(
            "Stitched %d segments into %d paths", len(segments), len(result.value)
        )
    return result


def is_closed(path: Polyline) -> bool:
    """True when the path's first and last points share a key."""
    return len(path) > 2 and endpoint_key(path[0]) == endpoint_key(path[-1])
