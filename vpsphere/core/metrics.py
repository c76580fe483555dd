from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import numpy as np

from vpsphere import config as vp_config
from vpsphere.core._metric_numba import NUMBA_METRIC_AVAILABLE, great_circle_pairwise_numba
from vpsphere.core.points import SphericalPoint, to_unit_vectors
from vpsphere.errors import NumericDomainError

ArrayLike = Any


def _clamped_arccos(cosine: float) -> float:
    if math.isnan(cosine):
        raise NumericDomainError("Inner product of unit vectors is NaN.")
    return math.acos(min(1.0, max(-1.0, cosine)))


def _clamped_arccos_array(cosines: np.ndarray) -> np.ndarray:
    if np.isnan(cosines).any():
        raise NumericDomainError("Inner product of unit vectors is NaN.")
    return np.arccos(np.clip(cosines, -1.0, 1.0))


def _dot_rows(lhs: np.ndarray, rhs: np.ndarray) -> np.ndarray:
    # Same summation order as the scalar path so both agree bit for bit.
    return lhs[..., 0] * rhs[..., 0] + lhs[..., 1] * rhs[..., 1] + lhs[..., 2] * rhs[..., 2]


@dataclass(frozen=True)
class SphericalMetric:
    """Great-circle (angular) distance between points on the unit sphere.

    Each point is mapped to a unit vector and the distance is the inverse
    cosine of their inner product. Rounding can push that inner product a few
    ulps outside ``[-1, 1]``, so it is clamped before ``arccos``; without the
    clamp coincident or antipodal points produce NaN, which breaks every
    ordering built on top of the metric.

    Instances hold no state and may be shared between threads.
    """

    name: str = "great_circle"

    def distance(self, a: SphericalPoint, b: SphericalPoint) -> float:
        ax, ay, az = a.unit_vector()
        bx, by, bz = b.unit_vector()
        return _clamped_arccos(ax * bx + ay * by + az * bz)

    def pairwise(self, lhs: ArrayLike, rhs: ArrayLike) -> np.ndarray:
        """Return the ``(n, m)`` matrix of distances between two point sets."""

        lhs_vec = to_unit_vectors(lhs)
        rhs_vec = to_unit_vectors(rhs)
        if lhs_vec.shape[0] == 0 or rhs_vec.shape[0] == 0:
            return np.zeros((lhs_vec.shape[0], rhs_vec.shape[0]), dtype=np.float64)
        if vp_config.runtime_config().enable_numba and NUMBA_METRIC_AVAILABLE:
            return great_circle_pairwise_numba(lhs_vec, rhs_vec)
        cosines = _dot_rows(lhs_vec[:, None, :], rhs_vec[None, :, :])
        return _clamped_arccos_array(cosines)

    def pointwise(self, lhs: ArrayLike, rhs: ArrayLike) -> np.ndarray:
        lhs_vec = to_unit_vectors(lhs)
        rhs_vec = to_unit_vectors(rhs)
        if lhs_vec.shape != rhs_vec.shape:
            raise ValueError("Pointwise metric operands must have identical shapes.")
        return _clamped_arccos_array(_dot_rows(lhs_vec, rhs_vec))


GREAT_CIRCLE = SphericalMetric()


def angular_distance(lhs_vector: np.ndarray, rhs_vector: np.ndarray) -> float:
    """Great-circle distance between two unit vectors already in Cartesian form."""

    return _clamped_arccos(float(_dot_rows(lhs_vector, rhs_vector)))


def great_circle_distance(a: SphericalPoint, b: SphericalPoint) -> float:
    return GREAT_CIRCLE.distance(a, b)


__all__ = [
    "GREAT_CIRCLE",
    "angular_distance",
    "SphericalMetric",
    "great_circle_distance",
]
