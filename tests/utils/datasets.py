from __future__ import annotations

import math
from typing import Tuple

import numpy as np
from numpy.random import Generator, default_rng

Array = np.ndarray

SCENARIO_POINTS_DEG: Tuple[Tuple[float, float], ...] = (
    (90.0, 0.0),
    (90.0, 180.0),
    (90.0, 90.0),
    (90.0, -90.0),
    (0.0, 0.0),
    (180.0, 0.0),
)


def _ensure_rng(rng: Generator | None) -> Generator:
    return rng or default_rng()


def random_sphere_points(rng: Generator | None, count: int) -> Array:
    """Sample `count` points uniformly on the sphere as (polar, azimuth) radians."""

    generator = _ensure_rng(rng)
    if count <= 0:
        return np.zeros((0, 2), dtype=np.float64)
    polar = np.arccos(np.clip(1.0 - 2.0 * generator.random(count), -1.0, 1.0))
    azimuth = generator.uniform(-math.pi, math.pi, size=count)
    return np.stack((polar, azimuth), axis=1)


def scenario_points(*, wrapped_azimuth: bool = False) -> Array:
    """The six reference points; optionally write -90 deg azimuth as 270 deg."""

    pairs = [
        (polar, 270.0 if wrapped_azimuth and az == -90.0 else az)
        for polar, az in SCENARIO_POINTS_DEG
    ]
    return np.radians(np.asarray(pairs, dtype=np.float64))


def scenario_query() -> Array:
    azimuth = -math.pi + (2.0 * math.pi / 100.0) * 54
    return np.asarray([math.radians(90.0), azimuth], dtype=np.float64)
