"""Mini README: Tests for GeoJSON route import and export."""

import json

import pytest

from roverpilot.utils.geojson import route_to_geojson, waypoints_from_geojson
from roverpilot.waypoints import Coordinate


def test_route_exports_as_linestring_in_lng_lat_order():
    feature = route_to_geojson([Coordinate(61.0, 28.0), Coordinate(61.1, 28.1)], name="Patrol")

    assert feature["geometry"]["type"] == "LineString"
    assert feature["geometry"]["coordinates"] == [[28.0, 61.0], [28.1, 61.1]]
    assert feature["properties"] == {"name": "Patrol", "waypoint_count": 2}


def test_feature_and_bare_geometry_import():
    geometry = {"type": "LineString", "coordinates": [[28.0, 61.0], [28.1, 61.1]]}
    feature = {"type": "Feature", "geometry": geometry, "properties": {}}
    expected = [Coordinate(61.0, 28.0), Coordinate(61.1, 28.1)]

    assert waypoints_from_geojson(json.dumps(geometry)) == expected
    assert waypoints_from_geojson(json.dumps(feature)) == expected


def test_multipoint_import():
    payload = json.dumps({"type": "MultiPoint", "coordinates": [[1.0, 2.0]]})
    assert waypoints_from_geojson(payload) == [Coordinate(2.0, 1.0)]


@pytest.mark.parametrize(
    "payload",
    [
        "{not json",
        "[]",
        json.dumps({"type": "Polygon", "coordinates": [[[0, 0], [1, 1], [1, 0], [0, 0]]]}),
        json.dumps({"type": "LineString", "coordinates": []}),
        json.dumps({"type": "LineString", "coordinates": [["a", "b"]]}),
    ],
)
def test_invalid_payloads_raise(payload):
    with pytest.raises(ValueError):
        waypoints_from_geojson(payload)
