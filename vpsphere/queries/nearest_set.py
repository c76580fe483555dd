from __future__ import annotations

import enum
import heapq
import math
import numbers
from dataclasses import dataclass
from typing import List, Tuple

from vpsphere.errors import (
    InvalidCandidateError,
    InvalidCapacityError,
    InvalidDistanceError,
    UseAfterExtractError,
)
from vpsphere.logging import get_logger

LOGGER = get_logger("queries.nearest_set")


@dataclass(frozen=True)
class CandidateEntry:
    """A visited point, referenced by its position in the caller's collection."""

    index: int
    distance: float


@dataclass(frozen=True)
class DistanceOrder:
    """Total order used by :class:`BoundedNearestSet` to rank candidates.

    Floats are only partially ordered, so the policy is fixed up front:

    * NaN, infinite and negative distances are rejected at the boundary with
      :class:`InvalidDistanceError` and never reach a comparison.
    * A candidate improves on the current worst only when it is strictly
      closer. Equal distances do not improve, so among tied candidates the one
      presented first is kept.
    """

    def validate(self, distance: float) -> float:
        value = float(distance)
        if not math.isfinite(value):
            raise InvalidDistanceError(f"Candidate distance must be finite, got {value!r}.")
        if value < 0.0:
            raise InvalidDistanceError(f"Candidate distance must be non-negative, got {value!r}.")
        return value

    def improves(self, candidate: float, worst: float) -> bool:
        return candidate < worst


DEFAULT_ORDER = DistanceOrder()


def _validate_index(candidate_index: int) -> int:
    if (
        isinstance(candidate_index, bool)
        or not isinstance(candidate_index, numbers.Integral)
        or candidate_index < 0
    ):
        raise InvalidCandidateError(
            f"Candidate index must be a non-negative integer, got {candidate_index!r}."
        )
    return int(candidate_index)


class NearestSetState(enum.Enum):
    COLLECTING = "collecting"
    FULL = "full"
    EXTRACTED = "extracted"


# Heap entries are (-distance, -sequence, index) so heapq's minimum is the
# farthest candidate and, among equal distances, the latest arrival.
_HeapEntry = Tuple[float, int, int]


class BoundedNearestSet:
    """Keep the ``k`` closest candidates reported by a search traversal.

    The traversal calls :meth:`consider` once per visited point, in whatever
    order it visits them, and may skip regions whose closest possible point is
    farther than :meth:`current_bound`. After the traversal finishes,
    :meth:`extract` hands back the retained entries and retires the set.

    The worst retained candidate sits at the top of a bounded max-heap, so
    :meth:`current_bound` is O(1) and :meth:`consider` is O(log k). A set is
    meant for a single query on a single thread; callers that share one
    between threads must serialise access themselves.
    """

    __slots__ = ("_k", "_order", "_heap", "_sequence", "_extracted")

    def __init__(self, k: int, *, order: DistanceOrder = DEFAULT_ORDER) -> None:
        if isinstance(k, bool) or not isinstance(k, numbers.Integral) or k < 1:
            raise InvalidCapacityError(f"Capacity k must be an integer >= 1, got {k!r}.")
        self._k = int(k)
        self._order = order
        self._heap: List[_HeapEntry] = []
        self._sequence = 0
        self._extracted = False

    @property
    def capacity(self) -> int:
        return self._k

    @property
    def state(self) -> NearestSetState:
        if self._extracted:
            return NearestSetState.EXTRACTED
        if len(self._heap) >= self._k:
            return NearestSetState.FULL
        return NearestSetState.COLLECTING

    def __len__(self) -> int:
        return len(self._heap)

    def is_full(self) -> bool:
        return len(self._heap) >= self._k

    def _ensure_live(self, operation: str) -> None:
        if self._extracted:
            raise UseAfterExtractError(f"Cannot call {operation}() after extract().")

    def consider(self, candidate_index: int, distance: float) -> None:
        """Offer a visited point to the set.

        Below capacity the candidate is always kept. At capacity it replaces
        the current worst only if it is strictly closer; a tie with the worst
        is rejected.
        """

        self._ensure_live("consider")
        value = self._order.validate(distance)
        index = _validate_index(candidate_index)
        entry = (-value, -self._sequence, index)
        self._sequence += 1

        if len(self._heap) < self._k:
            heapq.heappush(self._heap, entry)
            return

        worst = -self._heap[0][0]
        if not self._order.improves(value, worst):
            LOGGER.debug("rejected idx=%d dist=%r bound=%r", index, value, worst)
            return
        evicted = heapq.heapreplace(self._heap, entry)
        LOGGER.debug(
            "evicted idx=%d dist=%r for idx=%d dist=%r",
            evicted[2],
            -evicted[0],
            index,
            value,
        )

    def current_bound(self) -> float:
        """Pruning radius: the worst retained distance once full, else ``inf``."""

        self._ensure_live("current_bound")
        if len(self._heap) < self._k:
            return math.inf
        return -self._heap[0][0]

    def extract(self) -> Tuple[CandidateEntry, ...]:
        """Return the retained entries in no particular order and retire the set."""

        self._ensure_live("extract")
        entries = tuple(CandidateEntry(index=idx, distance=-neg) for neg, _, idx in self._heap)
        self._heap = []
        self._extracted = True
        return entries

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(k={self._k}, held={len(self._heap)}, "
            f"state={self.state.value})"
        )


def sort_candidates(entries: Tuple[CandidateEntry, ...] | List[CandidateEntry]) -> List[CandidateEntry]:
    """Order entries by ascending distance, breaking ties by index."""

    return sorted(entries, key=lambda entry: (entry.distance, entry.index))


__all__ = [
    "BoundedNearestSet",
    "CandidateEntry",
    "DEFAULT_ORDER",
    "DistanceOrder",
    "NearestSetState",
    "sort_candidates",
]
