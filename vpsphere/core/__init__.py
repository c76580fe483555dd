"""Spherical points and the great-circle metric."""

from .metrics import GREAT_CIRCLE, SphericalMetric, angular_distance, great_circle_distance
from .points import (
    SphericalPoint,
    as_point_array,
    points_from_degrees,
    to_unit_vectors,
    wrap_azimuth,
    wrap_azimuths,
)

__all__ = [
    "GREAT_CIRCLE",
    "SphericalMetric",
    "SphericalPoint",
    "angular_distance",
    "as_point_array",
    "great_circle_distance",
    "points_from_degrees",
    "to_unit_vectors",
    "wrap_azimuth",
    "wrap_azimuths",
]
