import logging
import math

import numpy as np
import pytest

from vpsphere.core.metrics import great_circle_distance
from vpsphere.core.points import SphericalPoint
from vpsphere.errors import (
    InvalidCandidateError,
    InvalidCapacityError,
    InvalidDistanceError,
    UseAfterExtractError,
)
from vpsphere.queries.nearest_set import (
    BoundedNearestSet,
    CandidateEntry,
    DistanceOrder,
    NearestSetState,
    sort_candidates,
)
from tests.utils.datasets import scenario_points, scenario_query


def _indices(entries):
    return sorted(entry.index for entry in entries)


@pytest.mark.parametrize("k", [0, -3, 1.5, True, None])
def test_invalid_capacity_rejected(k):
    with pytest.raises(InvalidCapacityError):
        BoundedNearestSet(k)


def test_invalid_capacity_is_value_error():
    with pytest.raises(ValueError):
        BoundedNearestSet(0)


def test_accepts_numpy_integer_capacity():
    nearest = BoundedNearestSet(np.int64(2))

    assert nearest.capacity == 2


def test_bound_is_infinite_until_full():
    nearest = BoundedNearestSet(3)
    assert nearest.state is NearestSetState.COLLECTING
    assert nearest.current_bound() == math.inf

    nearest.consider(0, 0.5)
    nearest.consider(1, 0.2)
    assert nearest.current_bound() == math.inf
    assert len(nearest) == 2

    nearest.consider(2, 0.9)
    assert nearest.state is NearestSetState.FULL
    assert nearest.current_bound() == pytest.approx(0.9)


def test_strictly_closer_candidate_evicts_worst():
    nearest = BoundedNearestSet(2)
    nearest.consider(0, 1.0)
    nearest.consider(1, 2.0)

    nearest.consider(2, 1.5)

    assert nearest.current_bound() == pytest.approx(1.5)
    assert _indices(nearest.extract()) == [0, 2]


def test_tie_with_worst_is_rejected():
    nearest = BoundedNearestSet(2)
    nearest.consider(0, 1.0)
    nearest.consider(1, 2.0)

    nearest.consider(2, 2.0)

    entries = nearest.extract()
    assert _indices(entries) == [0, 1]
    assert sorted(entry.distance for entry in entries) == [1.0, 2.0]


def test_eviction_among_tied_worst_keeps_first_inserted():
    nearest = BoundedNearestSet(2)
    nearest.consider(7, 1.0)
    nearest.consider(3, 1.0)

    nearest.consider(5, 0.5)

    assert _indices(nearest.extract()) == [5, 7]


def test_zero_distance_candidates_are_kept():
    nearest = BoundedNearestSet(1)
    nearest.consider(4, 0.0)
    nearest.consider(9, 0.0)

    assert nearest.extract() == (CandidateEntry(index=4, distance=0.0),)


def test_bound_never_increases():
    rng = np.random.default_rng(7)
    distances = rng.random(200)
    nearest = BoundedNearestSet(5)
    bounds = []
    for idx, dist in enumerate(distances):
        nearest.consider(idx, float(dist))
        bounds.append(nearest.current_bound())

    assert all(math.isinf(b) for b in bounds[:4])
    finite = bounds[4:]
    assert all(later <= earlier for earlier, later in zip(finite, finite[1:]))
    assert finite[-1] == pytest.approx(np.sort(distances)[4])


@pytest.mark.parametrize("k", [1, 3, 8, 40])
def test_retains_smallest_with_first_arrival_tie_break(k):
    rng = np.random.default_rng(k)
    count = 30
    # Integer distances force plenty of ties.
    distances = rng.integers(0, 6, size=count).astype(np.float64)
    arrival = rng.permutation(count)

    nearest = BoundedNearestSet(k)
    for idx in arrival:
        nearest.consider(int(idx), float(distances[idx]))
    result = nearest.extract()

    rank = {int(idx): pos for pos, idx in enumerate(arrival)}
    expected = sorted(range(count), key=lambda i: (distances[i], rank[i]))[: min(k, count)]
    assert len(result) == min(k, count)
    assert _indices(result) == sorted(expected)


def test_fewer_candidates_than_capacity_is_not_an_error():
    nearest = BoundedNearestSet(4)
    nearest.consider(0, 0.3)
    nearest.consider(1, 0.1)

    entries = nearest.extract()

    assert len(entries) == 2
    assert [entry.index for entry in sort_candidates(entries)] == [1, 0]


@pytest.mark.parametrize("distance", [-0.1, float("nan"), float("inf"), -float("inf")])
def test_invalid_distance_rejected(distance):
    nearest = BoundedNearestSet(2)
    nearest.consider(0, 0.5)

    with pytest.raises(InvalidDistanceError):
        nearest.consider(1, distance)

    assert len(nearest) == 1


def test_distance_order_policy():
    order = DistanceOrder()

    assert order.improves(0.1, 0.2)
    assert not order.improves(0.2, 0.2)
    assert not order.improves(0.3, 0.2)
    assert order.validate(0) == 0.0


def test_use_after_extract_raises():
    nearest = BoundedNearestSet(1)
    nearest.consider(0, 0.5)
    nearest.extract()

    assert nearest.state is NearestSetState.EXTRACTED
    with pytest.raises(UseAfterExtractError):
        nearest.consider(1, 0.1)
    with pytest.raises(UseAfterExtractError):
        nearest.current_bound()
    with pytest.raises(UseAfterExtractError):
        nearest.extract()


def test_extract_on_empty_set():
    nearest = BoundedNearestSet(3)

    assert nearest.extract() == ()


def test_rejections_logged_at_debug(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="vpsphere.queries.nearest_set")
    nearest = BoundedNearestSet(1)
    nearest.consider(0, 1.0)
    nearest.consider(1, 1.0)
    nearest.consider(2, 0.5)

    messages = [record.getMessage() for record in caplog.records]
    assert any(message.startswith("rejected idx=1") for message in messages)
    assert any(message.startswith("evicted idx=0") for message in messages)


@pytest.mark.parametrize("wrapped", [False, True])
def test_reference_scenario_keeps_three(wrapped):
    points = [SphericalPoint(*row) for row in scenario_points(wrapped_azimuth=wrapped)]
    query = SphericalPoint(*scenario_query())
    nearest = BoundedNearestSet(3)
    for idx, point in enumerate(points):
        nearest.consider(idx, great_circle_distance(query, point))

    entries = nearest.extract()

    assert len(entries) == 3
    indices = _indices(entries)
    assert indices[:2] == [0, 2]
    assert indices[2] in (4, 5)
    by_index = {entry.index: entry.distance for entry in entries}
    assert by_index[0] == pytest.approx(math.radians(14.4))
    assert by_index[2] == pytest.approx(math.radians(75.6))


@pytest.mark.parametrize("index", [-4, 2.9, 1.0, True, "3", None])
def test_invalid_candidate_index_rejected(index):
    nearest = BoundedNearestSet(2)
    nearest.consider(0, 0.5)

    with pytest.raises(InvalidCandidateError):
        nearest.consider(index, 0.1)

    assert nearest.extract() == (CandidateEntry(index=0, distance=0.5),)


def test_candidate_index_accepts_numpy_integers():
    nearest = BoundedNearestSet(1)
    nearest.consider(np.int64(6), 0.25)

    (entry,) = nearest.extract()
    assert entry.index == 6
    assert type(entry.index) is int


def test_invalid_candidate_is_value_error():
    with pytest.raises(ValueError):
        BoundedNearestSet(1).consider(-1, 0.0)
