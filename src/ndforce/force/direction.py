"""
Directional (per-axis) positioning force.

Pulls every node along a single axis towards a target coordinate, like a
spring anchored on a line (2D) or plane (3D). Useful for aligning nodes in
rows or columns. O(n) per application.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import numpy as np

from ..validation import validate_axis
from .base import Force, PerNodeValue, resolve_per_node

if TYPE_CHECKING:
    from ..simulation import SimulationState


class DirectionForce(Force):
    """
    Move nodes towards a target coordinate on one axis.

    ``velocity[i][axis] += (target_i - position[i][axis]) * strength_i * alpha``

    Example:
        # Pull every node towards y = 0
        force = DirectionForce(axis=1, target=0.0, strength=0.1)
    """

    def __init__(
        self,
        axis: int,
        target: PerNodeValue = 0.0,
        strength: PerNodeValue = 0.1,
    ) -> None:
        """
        Initialize direction force.

        Args:
            axis: Vector component the force acts on (0 = x, 1 = y, ...)
            target: Target coordinate, constant or callable taking a node id
            strength: Spring strength, constant or callable taking a node id
        """
        super().__init__()
        self._axis: int = int(axis)
        self._target: PerNodeValue = target
        self._strength: PerNodeValue = strength
        self._targets: Optional[np.ndarray] = None
        self._strengths: Optional[np.ndarray] = None

    @property
    def axis(self) -> int:
        """Get the axis the force acts on."""
        return self._axis

    def initialize(self, state: SimulationState) -> None:
        """
        Precompute targets and strengths.

        Raises:
            InvalidDimensionError: If ``axis`` is not an axis of the state
        """
        validate_axis(self._axis, state.dimension)
        self._targets = resolve_per_node(self._target, state.node_ids)
        self._strengths = resolve_per_node(self._strength, state.node_ids)
        super().initialize(state)

    def apply(self, state: SimulationState) -> None:
        self._check_initialized(state)
        assert self._targets is not None and self._strengths is not None
        axis = self._axis
        state.velocities[:, axis] += (
            (self._targets - state.positions[:, axis]) * self._strengths * state.alpha
        )


class PositionForce:
    """Shorthand constructors for the common axes."""

    @staticmethod
    def x(target: PerNodeValue = 0.0, strength: PerNodeValue = 0.1) -> DirectionForce:
        """Pull towards ``target`` on the x axis."""
        return DirectionForce(0, target, strength)

    @staticmethod
    def y(target: PerNodeValue = 0.0, strength: PerNodeValue = 0.1) -> DirectionForce:
        """Pull towards ``target`` on the y axis."""
        return DirectionForce(1, target, strength)

    @staticmethod
    def z(target: PerNodeValue = 0.0, strength: PerNodeValue = 0.1) -> DirectionForce:
        """Pull towards ``target`` on the z axis."""
        return DirectionForce(2, target, strength)


__all__ = ["DirectionForce", "PositionForce"]
