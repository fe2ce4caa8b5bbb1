"""
Centering force.

Translates all nodes so that their mean position moves towards a fixed
center. Positions are shifted directly (velocities are untouched), so the
relative layout is never distorted. O(n) per application.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np

from ..vector import as_vector
from .base import Force

if TYPE_CHECKING:
    from ..simulation import SimulationState


class CenterForce(Force):
    """
    Keep the layout's center of mass at ``center``.

    Each application moves every node by ``(mean - center) * strength``
    in the opposite direction.

    Example:
        force = CenterForce(center=(400, 300))
    """

    def __init__(self, center: Optional[Sequence[float]] = None, strength: float = 1.0) -> None:
        """
        Initialize centering force.

        Args:
            center: Target point. Defaults to the origin of the simulation's space.
            strength: Fraction of the offset removed per application (0 to 1)
        """
        super().__init__()
        self._center: Optional[np.ndarray] = None if center is None else as_vector(center)
        self._strength: float = max(0.0, min(1.0, float(strength)))

    @property
    def center(self) -> Optional[np.ndarray]:
        """Get target center point."""
        return self._center

    @center.setter
    def center(self, value: Optional[Sequence[float]]) -> None:
        """Set target center point."""
        self._center = None if value is None else as_vector(value)

    @property
    def strength(self) -> float:
        """Get centering strength."""
        return self._strength

    @strength.setter
    def strength(self, value: float) -> None:
        """Set centering strength (clamped to [0, 1])."""
        self._strength = max(0.0, min(1.0, float(value)))

    def initialize(self, state: SimulationState) -> None:
        if self._center is not None:
            as_vector(self._center, state.dimension)
        super().initialize(state)

    def apply(self, state: SimulationState) -> None:
        self._check_initialized(state)
        if state.node_count == 0:
            return
        center = self._center if self._center is not None else np.zeros(state.dimension)
        shift = (state.positions.mean(axis=0) - center) * self._strength
        state.positions -= shift


__all__ = ["CenterForce"]
