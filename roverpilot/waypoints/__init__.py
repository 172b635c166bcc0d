"""Mini README: Waypoint subsystem.

Exports the coordinate value type and the store that owns the operator's
ordered waypoint list.
"""

from .store import Coordinate, Snapshot, WaypointStore

__all__ = ["Coordinate", "Snapshot", "WaypointStore"]
