"""Mini README: GeoJSON helpers for exchanging routes with map widgets.

Keeping the logic here avoids importing the web framework when the helpers
are reused by the CLI or tests. GeoJSON orders positions as
``[longitude, latitude]``; the helpers convert to and from ``Coordinate``.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Sequence

from ..waypoints import Coordinate


def route_to_geojson(waypoints: Sequence[Coordinate], **properties: Any) -> Dict[str, Any]:
    """Return a LineString Feature tracing ``waypoints`` in order."""

    return {
        "type": "Feature",
        "geometry": {
            "type": "LineString",
            "coordinates": [[point.lng, point.lat] for point in waypoints],
        },
        "properties": {"waypoint_count": len(waypoints), **properties},
    }


def waypoints_from_geojson(payload: str) -> List[Coordinate]:
    """Parse a LineString or MultiPoint (bare or wrapped in a Feature)."""

    try:
        geojson = json.loads(payload)
    except json.JSONDecodeError as error:
        raise ValueError("GeoJSON payload is invalid JSON") from error
    if not isinstance(geojson, dict):
        raise ValueError("GeoJSON payload must be an object")

    if geojson.get("type") == "Feature":
        geometry = geojson.get("geometry") or {}
    else:
        geometry = geojson
    if geometry.get("type") not in {"LineString", "MultiPoint"}:
        raise ValueError("Only LineString or MultiPoint routes are supported")

    coordinates = geometry.get("coordinates")
    if not coordinates:
        raise ValueError("Route coordinates are required")
    try:
        return [Coordinate(lat=float(point[1]), lng=float(point[0])) for point in coordinates]
    except (TypeError, ValueError, IndexError) as error:
        raise ValueError("Route positions must be [longitude, latitude] pairs") from error
