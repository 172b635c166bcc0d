"""Mini README: Route planning subsystem.

Exports the interpolation helpers and the executor that turns a waypoint
snapshot into a paced, cancellable position stream.
"""

from .executor import RouteExecutionState, RouteExecutor, RouteRun
from .interpolation import (
    count_route_samples,
    interpolate_segment,
    iter_route_samples,
    route_duration_seconds,
)

__all__ = [
    "RouteExecutionState",
    "RouteExecutor",
    "RouteRun",
    "count_route_samples",
    "interpolate_segment",
    "iter_route_samples",
    "route_duration_seconds",
]
