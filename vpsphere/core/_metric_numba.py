from __future__ import annotations

import math

import numpy as np

try:  # pragma: no cover - optional dependency
    from numba import njit, prange  # type: ignore

    NUMBA_METRIC_AVAILABLE = True
except Exception:  # pragma: no cover - when numba unavailable
    njit = None  # type: ignore
    prange = range  # type: ignore
    NUMBA_METRIC_AVAILABLE = False


if NUMBA_METRIC_AVAILABLE:

    @njit(cache=True, parallel=True)
    def _pairwise_kernel(lhs: np.ndarray, rhs: np.ndarray, out: np.ndarray) -> None:
        n = lhs.shape[0]
        m = rhs.shape[0]
        for i in prange(n):
            for j in range(m):
                cosine = lhs[i, 0] * rhs[j, 0] + lhs[i, 1] * rhs[j, 1] + lhs[i, 2] * rhs[j, 2]
                if cosine > 1.0:
                    cosine = 1.0
                elif cosine < -1.0:
                    cosine = -1.0
                out[i, j] = math.acos(cosine)


def great_circle_pairwise_numba(lhs_vectors: np.ndarray, rhs_vectors: np.ndarray) -> np.ndarray:
    """Pairwise great-circle distances between two ``(n, 3)`` unit-vector sets."""

    if not NUMBA_METRIC_AVAILABLE:
        raise RuntimeError("Numba great-circle kernel requested but numba is not installed.")
    lhs = np.ascontiguousarray(lhs_vectors, dtype=np.float64)
    rhs = np.ascontiguousarray(rhs_vectors, dtype=np.float64)
    out = np.empty((lhs.shape[0], rhs.shape[0]), dtype=np.float64)
    _pairwise_kernel(lhs, rhs, out)
    return out


__all__ = ["NUMBA_METRIC_AVAILABLE", "great_circle_pairwise_numba"]
