"""Mini README: Tests for the ordered waypoint store.

Covers append/remove ordering, empty-store errors, clearing and the
snapshot notifications observers rely on.
"""

import pytest

from roverpilot.exceptions import EmptyStoreError
from roverpilot.waypoints import Coordinate, WaypointStore


def test_append_then_remove_last_restores_previous_sequence():
    store = WaypointStore()
    store.append(Coordinate(1.0, 2.0))
    before = store.snapshot()

    length = store.append(Coordinate(3.0, 4.0))
    removed = store.remove_last()

    assert length == 2
    assert removed == Coordinate(3.0, 4.0)
    assert store.snapshot() == before


def test_remove_last_on_empty_store_raises():
    store = WaypointStore()
    with pytest.raises(EmptyStoreError):
        store.remove_last()
    assert len(store) == 0


def test_clear_is_idempotent_and_always_notifies():
    store = WaypointStore()
    seen = []
    store.subscribe(seen.append)
    store.append(Coordinate(1.0, 1.0))

    store.clear()
    store.clear()

    assert len(store) == 0
    assert seen == [(Coordinate(1.0, 1.0),), (), ()]


def test_reset_to_replaces_every_waypoint():
    store = WaypointStore()
    for value in range(3):
        store.append(Coordinate(float(value), float(value)))

    store.reset_to(Coordinate(61.0, 28.0))

    assert list(store) == [Coordinate(61.0, 28.0)]


def test_snapshot_is_not_affected_by_later_edits():
    store = WaypointStore()
    store.append(Coordinate(1.0, 1.0))
    snapshot = store.snapshot()
    store.append(Coordinate(2.0, 2.0))
    assert snapshot == (Coordinate(1.0, 1.0),)


def test_unsubscribed_listener_is_not_called():
    store = WaypointStore()
    seen = []
    unsubscribe = store.subscribe(seen.append)
    unsubscribe()
    store.append(Coordinate(1.0, 1.0))
    assert seen == []


def test_failing_listener_does_not_block_others():
    store = WaypointStore()
    seen = []

    def broken(_snapshot):
        raise RuntimeError("listener failure")

    store.subscribe(broken)
    store.subscribe(seen.append)
    store.append(Coordinate(1.0, 1.0))
    assert len(seen) == 1


def test_coordinate_formatting_and_validity():
    point = Coordinate(61.05871, 28.18871)
    assert str(point) == "61.058710, 28.188710"
    assert point.is_valid()
    assert not Coordinate(91.0, 0.0).is_valid()
    assert point.as_dict() == {"lat": 61.05871, "lng": 28.18871}


def test_out_of_range_coordinates_are_stored_unchanged():
    store = WaypointStore()
    outlier = Coordinate(91.0, 200.0)

    store.append(outlier)

    assert not outlier.is_valid()
    assert store.snapshot() == (outlier,)
    assert store.remove_last() == outlier
