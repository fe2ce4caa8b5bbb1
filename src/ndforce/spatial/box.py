"""
Axis-aligned boxes in N-dimensional space.

An NDBox is the region covered by one node of an NDTree. Containment is
half-open (``p0[i] <= x[i] < p1[i]``) so that the 2**D children of a box
partition it without overlap.
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from ..validation import EmptyPointSetError, InvalidDimensionError
from ..vector import as_points, as_vector


class NDBox:
    """
    A box in D-dimensional space.

    Attributes:
        p0: Component-wise minimum corner
        p1: Component-wise maximum corner

    The corners passed to the constructor do not have to be ordered; each
    axis is swapped as needed so that ``p0[i] <= p1[i]``.
    """

    __slots__ = ("p0", "p1")

    def __init__(self, p0: Sequence[float], p1: Sequence[float]) -> None:
        a = as_vector(p0)
        b = as_vector(p1)
        if a.shape != b.shape:
            raise InvalidDimensionError(
                f"Box corners must have the same dimension, got {a.shape[0]} and {b.shape[0]}"
            )
        self.p0: np.ndarray = np.minimum(a, b)
        self.p1: np.ndarray = np.maximum(a, b)

    @classmethod
    def cover(cls, points: Any) -> NDBox:
        """
        Smallest box containing every point, with a unit margin on the upper side.

        Each upper bound is ``max + 1`` so that every point, including the
        ones on the maximum boundary, is strictly inside the half-open box.
        This also guarantees each side is at least one unit wide.

        Args:
            points: Non-empty sequence of D-dimensional points, or an (n, D) array

        Returns:
            The covering NDBox

        Raises:
            EmptyPointSetError: If ``points`` is empty
        """
        pts = as_points(points)
        if pts.shape[0] == 0:
            raise EmptyPointSetError("Cannot cover an empty set of points")
        return cls(pts.min(axis=0), pts.max(axis=0) + 1)

    @property
    def dimension(self) -> int:
        """Number of axes."""
        return int(self.p0.shape[0])

    @property
    def diagonal(self) -> np.ndarray:
        """Vector from ``p0`` to ``p1``."""
        return self.p1 - self.p0

    @property
    def center(self) -> np.ndarray:
        """Midpoint of the box, used as the split point for subdivision."""
        return (self.p0 + self.p1) / 2

    @property
    def width(self) -> float:
        """Length of the widest side."""
        return float(np.max(self.p1 - self.p0))

    def contains(self, point: Sequence[float]) -> bool:
        """Half-open containment test: ``p0 <= point < p1`` on every axis."""
        p = np.asarray(point, dtype=np.float64)
        return bool(np.all(self.p0 <= p) and np.all(p < self.p1))

    def corner(self, direction: int) -> np.ndarray:
        """
        Corner selected by the bits of ``direction``.

        Bit ``i`` set selects ``p1[i]``, otherwise ``p0[i]``. Directions
        range over ``[0, 2**D)``.
        """
        corner = self.p0.copy()
        for i in range(self.dimension):
            if (direction >> i) & 1:
                corner[i] = self.p1[i]
        return corner

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NDBox):
            return NotImplemented
        return bool(np.array_equal(self.p0, other.p0) and np.array_equal(self.p1, other.p1))

    def __repr__(self) -> str:
        return f"NDBox(p0={self.p0.tolist()}, p1={self.p1.tolist()})"


__all__ = ["NDBox"]
