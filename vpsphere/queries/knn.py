from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import Any, List, Tuple

import numpy as np

from vpsphere import config as vp_config
from vpsphere.core.metrics import GREAT_CIRCLE, angular_distance
from vpsphere.core.points import SphericalPoint, as_point_array, to_unit_vectors
from vpsphere.diagnostics import log_operation
from vpsphere.errors import InvalidCapacityError
from vpsphere.logging import get_logger
from vpsphere.queries.nearest_set import BoundedNearestSet, sort_candidates


LOGGER = get_logger("queries.knn")

# arccos of a dot product off by a few ulps near 1 can undershoot the true
# angle by up to sqrt(2 * 8 * eps).
_ARCCOS_SLACK = 4.0 * math.sqrt(sys.float_info.epsilon)


@dataclass(frozen=True)
class PolarBandView:
    """Points ordered by polar angle, with their unit vectors precomputed."""

    order: np.ndarray
    sorted_polar: np.ndarray
    vectors: np.ndarray

    @classmethod
    def from_points(cls, points: np.ndarray) -> "PolarBandView":
        order = np.argsort(points[:, 0], kind="stable").astype(np.int64)
        return cls(
            order=order,
            sorted_polar=np.ascontiguousarray(points[order, 0]),
            vectors=to_unit_vectors(points),
        )

    @property
    def num_points(self) -> int:
        return int(self.order.shape[0])


@dataclass
class SweepStats:
    visited: int = 0
    pruned: int = 0


def _sweep_query(
    query: np.ndarray,
    *,
    view: PolarBandView,
    k: int,
    slack: float,
    stats: SweepStats,
) -> Tuple[np.ndarray, np.ndarray]:
    """Collect the ``k`` nearest points to one query by sweeping polar bands.

    The polar-angle gap between the query and a point never exceeds their
    great-circle distance, so the sweep walks outward from the query's polar
    angle and stops once the nearer frontier lies beyond the pruning bound.
    """

    num_points = view.num_points
    query_polar = float(query[0])
    query_vec = to_unit_vectors(query)[0]
    nearest = BoundedNearestSet(k)

    right = int(np.searchsorted(view.sorted_polar, query_polar, side="left"))
    left = right - 1
    while left >= 0 or right < num_points:
        left_gap = query_polar - float(view.sorted_polar[left]) if left >= 0 else math.inf
        right_gap = float(view.sorted_polar[right]) - query_polar if right < num_points else math.inf
        if left_gap <= right_gap:
            gap, position = left_gap, left
            left -= 1
        else:
            gap, position = right_gap, right
            right += 1

        if gap - slack > nearest.current_bound():
            # The other frontier is at least as far away.
            stats.pruned += (left + 1) + (num_points - right) + 1
            break

        idx = int(view.order[position])
        nearest.consider(idx, angular_distance(view.vectors[idx], query_vec))
        stats.visited += 1

    ordered = sort_candidates(nearest.extract())
    indices = np.asarray([entry.index for entry in ordered], dtype=np.int64)
    distances = np.asarray([entry.distance for entry in ordered], dtype=np.float64)
    return indices, distances


def bruteforce_knn(points: Any, query: Any, k: int) -> Tuple[np.ndarray, np.ndarray]:
    """Dense reference answer: every distance computed, ties broken by index."""

    if k <= 0:
        raise InvalidCapacityError("k must be positive.")
    dists = GREAT_CIRCLE.pairwise(query, points)[0]
    order = np.argsort(dists, kind="stable")[:k]
    return order.astype(np.int64), dists[order].astype(np.float64)


def _is_single_query(query_points: Any) -> bool:
    if isinstance(query_points, SphericalPoint):
        return True
    if isinstance(query_points, (list, tuple)) and query_points:
        if all(isinstance(q, SphericalPoint) for q in query_points):
            return False
    return np.ndim(query_points) == 1 and np.size(query_points) == 2


def knn(
    points: Any,
    query_points: Any,
    *,
    k: int,
    return_distances: bool = False,
) -> Tuple[np.ndarray, np.ndarray] | np.ndarray:
    """Return the ``k`` nearest points (by great-circle distance) for each query.

    Results are sorted by ascending distance. When the collection holds fewer
    than ``k`` points every point is returned; this is not an error. A single
    query (a :class:`SphericalPoint` or a length-2 vector) yields 1-D arrays,
    a batch yields ``(queries, min(k, n))`` arrays.
    """

    with log_operation(LOGGER, "knn_query") as op_log:
        return _knn_impl(
            op_log,
            points,
            query_points,
            k=k,
            return_distances=return_distances,
        )


def _knn_impl(
    op_log: Any,
    points: Any,
    query_points: Any,
    *,
    k: int,
    return_distances: bool,
) -> Tuple[np.ndarray, np.ndarray] | np.ndarray:
    if k <= 0:
        raise InvalidCapacityError("k must be positive.")
    points_arr = as_point_array(points)
    if points_arr.shape[0] == 0:
        raise ValueError("Cannot query an empty point set.")
    single = _is_single_query(query_points)
    batch = as_point_array(query_points)

    runtime = vp_config.runtime_config()
    view = PolarBandView.from_points(points_arr)
    stats = SweepStats()

    results_indices: List[np.ndarray] = []
    results_distances: List[np.ndarray] = []
    for query in batch:
        indices, distances = _sweep_query(
            query,
            view=view,
            k=int(k),
            slack=max(runtime.bound_slack, _ARCCOS_SLACK),
            stats=stats,
        )
        results_indices.append(indices)
        results_distances.append(distances)

    width = min(int(k), view.num_points)
    if results_indices:
        indices_arr = np.stack(results_indices, axis=0)
        distances_arr = np.stack(results_distances, axis=0)
    else:
        indices_arr = np.empty((0, width), dtype=np.int64)
        distances_arr = np.empty((0, width), dtype=np.float64)

    if op_log is not None:
        op_log.add_metadata(
            queries=int(batch.shape[0]),
            k=k,
            points=view.num_points,
            visited=stats.visited,
            pruned=stats.pruned,
            return_distances=bool(return_distances),
        )

    if single:
        indices_arr = indices_arr[0]
        distances_arr = distances_arr[0]
    if not return_distances:
        return indices_arr
    return indices_arr, distances_arr


def nearest_neighbor(
    points: Any,
    query_points: Any,
    *,
    return_distances: bool = False,
) -> Tuple[Any, Any] | Any:
    result = knn(points, query_points, k=1, return_distances=True)
    indices, distances = result
    indices = indices[..., 0]
    distances = distances[..., 0]
    if not return_distances:
        return indices
    return indices, distances


__all__ = [
    "PolarBandView",
    "bruteforce_knn",
    "knn",
    "nearest_neighbor",
]
