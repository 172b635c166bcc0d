"""Mini README: Ordered waypoint storage for route planning.

Structure:
    * Coordinate - immutable latitude/longitude pair.
    * WaypointStore - ordered, duplicate-friendly list with change notifications.

The store is the single owner of the operator's waypoint list. Consumers
never hold the live list: they receive tuple snapshots, either by calling
``snapshot`` or by subscribing to change notifications which fire
synchronously after every mutation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Tuple

from ..exceptions import EmptyStoreError
from ..logging_utils import get_logger
from ..utils.listeners import ListenerSet

LOGGER = get_logger(__name__)

Snapshot = Tuple["Coordinate", ...]


@dataclass(frozen=True, slots=True)
class Coordinate:
    """Planar latitude/longitude pair in decimal degrees."""

    lat: float
    lng: float

    def is_valid(self) -> bool:
        """Return True when both components sit inside their nominal ranges."""

        return -90.0 <= self.lat <= 90.0 and -180.0 <= self.lng <= 180.0

    def as_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    def __str__(self) -> str:
        return f"{self.lat:.6f}, {self.lng:.6f}"


class WaypointStore:
    """Hold the operator's ordered waypoints and broadcast every change."""

    def __init__(self) -> None:
        self._waypoints: List[Coordinate] = []
        self._listeners: ListenerSet[Snapshot] = ListenerSet("waypoints_changed")

    def __len__(self) -> int:
        return len(self._waypoints)

    def __iter__(self) -> Iterator[Coordinate]:
        return iter(self.snapshot())

    def snapshot(self) -> Snapshot:
        """Return an immutable copy of the current waypoint order."""

        return tuple(self._waypoints)

    def subscribe(self, callback: Callable[[Snapshot], None]) -> Callable[[], None]:
        """Register a waypoints-changed listener; returns the unsubscribe hook."""

        return self._listeners.subscribe(callback)

    def append(self, coordinate: Coordinate) -> int:
        """Add ``coordinate`` at the end and return the new length.

        Coordinates are stored exactly as given; range checking is left to
        callers (see ``Coordinate.is_valid``).
        """

        self._waypoints.append(coordinate)
        LOGGER.debug("Waypoint %s added (%s total)", coordinate, len(self._waypoints))
        self._notify()
        return len(self._waypoints)

    def remove_last(self) -> Coordinate:
        """Remove and return the most recently added waypoint."""

        if not self._waypoints:
            raise EmptyStoreError("No waypoints to remove")
        removed = self._waypoints.pop()
        LOGGER.debug("Waypoint %s removed (%s left)", removed, len(self._waypoints))
        self._notify()
        return removed

    def clear(self) -> None:
        """Drop every waypoint. Safe to call on an empty store."""

        self._waypoints.clear()
        LOGGER.debug("Waypoints cleared")
        self._notify()

    def reset_to(self, coordinate: Coordinate) -> None:
        """Replace the whole list with a single starting waypoint."""

        self._waypoints = [coordinate]
        LOGGER.debug("Waypoints reset to start at %s", coordinate)
        self._notify()

    def _notify(self) -> None:
        self._listeners.notify(self.snapshot())
