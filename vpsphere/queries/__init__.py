from .knn import PolarBandView, bruteforce_knn, knn, nearest_neighbor
from .nearest_set import (
    BoundedNearestSet,
    CandidateEntry,
    DistanceOrder,
    NearestSetState,
    sort_candidates,
)

__all__ = [
    "BoundedNearestSet",
    "CandidateEntry",
    "DistanceOrder",
    "NearestSetState",
    "PolarBandView",
    "bruteforce_knn",
    "knn",
    "nearest_neighbor",
    "sort_candidates",
]
