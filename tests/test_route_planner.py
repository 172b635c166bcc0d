"""Mini README: Tests for route interpolation helpers.

Validates segment sampling, exact endpoints and sample counting for
multi-segment routes.
"""

import pytest

from roverpilot.route_planning import (
    count_route_samples,
    interpolate_segment,
    iter_route_samples,
    route_duration_seconds,
)
from roverpilot.waypoints import Coordinate


def test_segment_has_steps_plus_one_samples_with_exact_endpoints():
    start, end = Coordinate(0.0, 0.0), Coordinate(10.0, 10.0)
    samples = interpolate_segment(start, end, 50)

    assert len(samples) == 51
    assert samples[0] == start
    assert samples[-1] == end
    assert samples[25].lat == pytest.approx(5.0)
    assert samples[25].lng == pytest.approx(5.0)


def test_endpoints_are_exact_for_awkward_values():
    start, end = Coordinate(61.05871, 28.18871), Coordinate(61.1, 28.3)
    samples = interpolate_segment(start, end, 7)
    assert samples[0] == start
    assert samples[-1] == end


def test_segment_rejects_zero_steps():
    with pytest.raises(ValueError):
        interpolate_segment(Coordinate(0.0, 0.0), Coordinate(1.0, 1.0), 0)


def test_shared_boundary_sample_is_emitted_once():
    route = [Coordinate(0.0, 0.0), Coordinate(1.0, 0.0), Coordinate(1.0, 1.0)]
    samples = list(iter_route_samples(route, 4))

    assert len(samples) == count_route_samples(3, 4) == 9
    assert samples.count(Coordinate(1.0, 0.0)) == 1
    assert samples[4] == Coordinate(1.0, 0.0)
    assert samples[-1] == Coordinate(1.0, 1.0)


def test_short_routes_have_no_samples():
    assert count_route_samples(1, 50) == 0
    assert list(iter_route_samples([Coordinate(0.0, 0.0)], 50)) == []


def test_route_duration_follows_sample_pacing():
    assert route_duration_seconds(2, 50, 0.05) == pytest.approx(2.5)
    assert route_duration_seconds(1, 50, 0.05) == 0.0
