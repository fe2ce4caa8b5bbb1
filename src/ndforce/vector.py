"""
Vector helpers for D-dimensional points.

Points and velocities are 1-D float64 numpy arrays; a set of points is an
(n, D) array. numpy already provides the arithmetic, so this module only adds
the operations force calculations need on top of it: lengths, a zero vector,
and ``jiggled`` for perturbing degenerate (zero) components.
"""

from __future__ import annotations

import math
from typing import Any, Optional, Sequence

import numpy as np

from .validation import InvalidDimensionError

# Half-width of the uniform jitter applied to zero components.
JIGGLE_MAGNITUDE = 5e-6

_default_rng = np.random.default_rng()


def zero(dimension: int) -> np.ndarray:
    """Return the zero vector of the given dimension."""
    return np.zeros(dimension, dtype=np.float64)


def length_squared(v: np.ndarray) -> float:
    """Squared Euclidean length of ``v``."""
    return float(np.dot(v, v))


def length(v: np.ndarray) -> float:
    """Euclidean length of ``v``."""
    return math.sqrt(length_squared(v))


def distance_squared(a: np.ndarray, b: np.ndarray) -> float:
    """Squared Euclidean distance between two points."""
    d = a - b
    return float(np.dot(d, d))


def jiggled(v: np.ndarray, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """
    Return a copy of ``v`` with zero (or NaN) components replaced by jitter.

    Non-zero components are left untouched, so a vector that already has a
    direction keeps it exactly. The jitter is uniform in
    ``[-JIGGLE_MAGNITUDE, JIGGLE_MAGNITUDE]``.

    Args:
        v: Vector to perturb
        rng: Random generator. Defaults to a module-level generator.

    Returns:
        New array; ``v`` is not modified.
    """
    degenerate = (v == 0) | np.isnan(v)
    if not degenerate.any():
        return v.copy()
    if rng is None:
        rng = _default_rng
    result = v.copy()
    result[degenerate] = rng.uniform(-JIGGLE_MAGNITUDE, JIGGLE_MAGNITUDE, int(degenerate.sum()))
    return result


def as_points(values: Any, dimension: Optional[int] = None) -> np.ndarray:
    """
    Normalize a sequence of points into an (n, D) float64 array.

    Args:
        values: Sequence of equal-length coordinate sequences, or an array
        dimension: Expected D. If None, inferred from the data.

    Returns:
        A new (n, D) array

    Raises:
        InvalidDimensionError: If the points are ragged, not 2-D data, or do
            not match ``dimension``
    """
    try:
        points = np.array(values, dtype=np.float64)
    except ValueError as e:
        raise InvalidDimensionError(f"Points must all have the same dimension: {e}") from e

    if points.ndim == 1 and points.size == 0:
        points = points.reshape(0, dimension if dimension is not None else 0)
    if points.ndim != 2:
        raise InvalidDimensionError(f"Points must be an (n, D) array, got shape {points.shape}")
    if dimension is not None and points.shape[1] != dimension:
        raise InvalidDimensionError(
            f"Expected points of dimension {dimension}, got {points.shape[1]}"
        )
    return points


def as_vector(value: Sequence[float], dimension: Optional[int] = None) -> np.ndarray:
    """Normalize a single point into a 1-D float64 array."""
    v = np.array(value, dtype=np.float64)
    if v.ndim != 1:
        raise InvalidDimensionError(f"A point must be 1-D, got shape {v.shape}")
    if dimension is not None and v.shape[0] != dimension:
        raise InvalidDimensionError(f"Expected a point of dimension {dimension}, got {v.shape[0]}")
    return v


__all__ = [
    "JIGGLE_MAGNITUDE",
    "zero",
    "length_squared",
    "length",
    "distance_squared",
    "jiggled",
    "as_points",
    "as_vector",
]
