from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Tuple

import numpy as np

from vpsphere.errors import InvalidPointError

_TWO_PI = 2.0 * math.pi
# Degree conversions of 0 and 180 may land an ulp outside [0, pi].
_POLAR_TOLERANCE = 1e-12


def wrap_azimuth(azimuth: float) -> float:
    """Map ``azimuth`` into ``[-pi, pi]`` using the exact IEEE remainder."""

    return math.remainder(azimuth, _TWO_PI)


def wrap_azimuths(azimuths: Any) -> np.ndarray:
    """Array form of :func:`wrap_azimuth`, bit-identical to ``math.remainder``.

    ``fmod`` is exact, and folding a residue from ``(pi, 2*pi)`` back by one
    period is exact as well, so no rounding enters before the trig calls.
    """

    values = np.asarray(azimuths, dtype=np.float64)
    residue = np.fmod(values, _TWO_PI)
    folded = np.where(
        np.abs(residue) > math.pi, residue - np.copysign(_TWO_PI, residue), residue
    )
    # Exact half-period ties round the quotient to even.
    tie = np.abs(residue) == math.pi
    if np.any(tie):
        quotient = np.rint((values - residue) / _TWO_PI)
        odd = tie & (np.fmod(quotient, 2.0) != 0.0)
        folded = np.where(odd, -residue, folded)
    return folded


def _validate_angles(polar: float, azimuth: float) -> None:
    if not (math.isfinite(polar) and math.isfinite(azimuth)):
        raise InvalidPointError(
            f"Spherical angles must be finite, got polar={polar!r} azimuth={azimuth!r}."
        )
    if polar < -_POLAR_TOLERANCE or polar > math.pi + _POLAR_TOLERANCE:
        raise InvalidPointError(f"Polar angle {polar!r} lies outside [0, pi].")


@dataclass(frozen=True)
class SphericalPoint:
    """Location on the unit sphere in radians.

    ``polar`` is measured from the +z axis and must lie in ``[0, pi]``.
    ``azimuth`` is measured from +x towards +y and may use any representative
    modulo ``2*pi``.
    """

    polar: float
    azimuth: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "polar", float(self.polar))
        object.__setattr__(self, "azimuth", float(self.azimuth))
        _validate_angles(self.polar, self.azimuth)
        object.__setattr__(self, "polar", min(math.pi, max(0.0, self.polar)))

    @classmethod
    def from_degrees(cls, polar: float, azimuth: float) -> "SphericalPoint":
        return cls(math.radians(polar), math.radians(azimuth))

    def unit_vector(self) -> Tuple[float, float, float]:
        az = wrap_azimuth(self.azimuth)
        sin_polar = math.sin(self.polar)
        return (
            sin_polar * math.cos(az),
            sin_polar * math.sin(az),
            math.cos(self.polar),
        )


def as_point_array(points: Any) -> np.ndarray:
    """Return ``points`` as a validated ``(n, 2)`` float64 array of radians.

    Accepts a :class:`SphericalPoint`, an iterable of them, or anything
    array-like with a trailing dimension of two.
    """

    if isinstance(points, SphericalPoint):
        arr = np.asarray([[points.polar, points.azimuth]], dtype=np.float64)
    elif _is_point_iterable(points):
        arr = np.asarray([[p.polar, p.azimuth] for p in points], dtype=np.float64)
        arr = arr.reshape(-1, 2)
    else:
        arr = np.asarray(points, dtype=np.float64)
        if arr.ndim == 1:
            arr = arr.reshape(0, 2) if arr.size == 0 else arr[None, :]
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise InvalidPointError(
            f"Expected points with shape (n, 2) of (polar, azimuth); got {arr.shape}."
        )
    if arr.size and not np.all(np.isfinite(arr)):
        raise InvalidPointError("Spherical angles must be finite.")
    polar = arr[:, 0]
    if np.any((polar < -_POLAR_TOLERANCE) | (polar > math.pi + _POLAR_TOLERANCE)):
        raise InvalidPointError("Polar angles must lie in [0, pi].")
    if arr.size:
        arr = arr.copy()
        np.clip(arr[:, 0], 0.0, math.pi, out=arr[:, 0])
    return arr


def _is_point_iterable(points: Any) -> bool:
    if isinstance(points, (np.ndarray, str, bytes)):
        return False
    if not isinstance(points, (list, tuple)):
        return False
    return bool(points) and all(isinstance(p, SphericalPoint) for p in points)


def to_unit_vectors(points: Any) -> np.ndarray:
    """Vectorised :meth:`SphericalPoint.unit_vector` for an ``(n, 2)`` array."""

    arr = as_point_array(points)
    polar = arr[:, 0]
    azimuth = wrap_azimuths(arr[:, 1])
    sin_polar = np.sin(polar)
    return np.stack(
        (sin_polar * np.cos(azimuth), sin_polar * np.sin(azimuth), np.cos(polar)),
        axis=1,
    )


def points_from_degrees(pairs: Iterable[Tuple[float, float]]) -> Tuple[SphericalPoint, ...]:
    return tuple(SphericalPoint.from_degrees(polar, az) for polar, az in pairs)


__all__ = [
    "SphericalPoint",
    "as_point_array",
    "points_from_degrees",
    "to_unit_vectors",
    "wrap_azimuth",
    "wrap_azimuths",
]
