"""vpsphere: k-nearest-neighbour selection on the unit sphere.

Quick Start
-----------
>>> from vpsphere import BoundedNearestSet, SphericalPoint, great_circle_distance
>>>
>>> query = SphericalPoint.from_degrees(90.0, 14.4)
>>> points = [SphericalPoint.from_degrees(90.0, az) for az in (0.0, 90.0, 180.0)]
>>> nearest = BoundedNearestSet(2)
>>> for idx, point in enumerate(points):
...     nearest.consider(idx, great_circle_distance(query, point))
>>> sorted(entry.index for entry in nearest.extract())
[0, 1]

Classes
-------
SphericalMetric : Great-circle distance between polar/azimuth points.
BoundedNearestSet : Bounded max-heap holding the k best candidates of a search.
"""

from importlib.metadata import version as _pkg_version

try:
    __version__ = _pkg_version("vpsphere")
except Exception:  # pragma: no cover - best effort during local development
    __version__ = "0.1.0"

from .core import (
    GREAT_CIRCLE,
    SphericalMetric,
    SphericalPoint,
    great_circle_distance,
    to_unit_vectors,
)
from .errors import (
    InvalidCandidateError,
    InvalidCapacityError,
    InvalidDistanceError,
    InvalidPointError,
    NumericDomainError,
    UseAfterExtractError,
    VPSphereError,
)
from .queries import (
    BoundedNearestSet,
    CandidateEntry,
    DistanceOrder,
    NearestSetState,
    bruteforce_knn,
    knn,
    nearest_neighbor,
)

__all__ = [
    "__version__",
    "BoundedNearestSet",
    "CandidateEntry",
    "DistanceOrder",
    "GREAT_CIRCLE",
    "NearestSetState",
    "SphericalMetric",
    "SphericalPoint",
    "bruteforce_knn",
    "great_circle_distance",
    "knn",
    "nearest_neighbor",
    "to_unit_vectors",
    "InvalidCandidateError",
    "InvalidCapacityError",
    "InvalidDistanceError",
    "InvalidPointError",
    "NumericDomainError",
    "UseAfterExtractError",
    "VPSphereError",
]
