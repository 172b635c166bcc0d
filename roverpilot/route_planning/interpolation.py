"""Mini README: Planar interpolation between consecutive waypoints.

Structure:
    * interpolate_segment - ``steps + 1`` evenly spaced samples from start to end.
    * iter_route_samples - lazily chain segments, emitting shared points once.
    * count_route_samples / route_duration_seconds - sizing helpers.

Interpolation is linear in latitude/longitude (no great-circle maths). The
first and last samples of a segment are the waypoints themselves rather
than computed values, so segment boundaries never drift.
"""

from __future__ import annotations

from typing import Iterator, List, Sequence

import numpy as np

from ..waypoints import Coordinate


def interpolate_segment(start: Coordinate, end: Coordinate, steps: int) -> List[Coordinate]:
    """Return ``steps + 1`` samples where sample k is ``start + (end - start) * k / steps``."""

    if steps < 1:
        raise ValueError("steps must be at least 1")
    fractions = np.arange(steps + 1, dtype=np.float64) / steps
    lats = start.lat + (end.lat - start.lat) * fractions
    lngs = start.lng + (end.lng - start.lng) * fractions
    samples = [Coordinate(lat=float(lat), lng=float(lng)) for lat, lng in zip(lats, lngs)]
    samples[0] = start
    samples[-1] = end
    return samples


def iter_route_samples(waypoints: Sequence[Coordinate], steps: int) -> Iterator[Coordinate]:
    """Yield every sample of the route, one segment at a time."""

    for index in range(1, len(waypoints)):
        segment = interpolate_segment(waypoints[index - 1], waypoints[index], steps)
        # the first sample repeats the previous segment's last one
        yield from segment if index == 1 else segment[1:]


def count_route_samples(waypoint_count: int, steps: int) -> int:
    """Number of samples ``iter_route_samples`` produces for a route."""

    if waypoint_count < 2:
        return 0
    return steps * (waypoint_count - 1) + 1


def route_duration_seconds(waypoint_count: int, steps: int, step_interval: float) -> float:
    """Wall-clock time a paced run takes, ignoring scheduling overhead."""

    samples = count_route_samples(waypoint_count, steps)
    return max(samples - 1, 0) * step_interval
