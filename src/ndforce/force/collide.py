"""
Collision force preventing nodes from overlapping.

Nodes are treated as circles (spheres in 3D, balls in general) with a per-node
radius. Each application rebuilds an NDTree whose aggregate is the largest
radius beneath every node, so a query can skip any subtree whose box is
farther away than ``max radius + own radius``. Overlapping pairs are pushed
apart by a velocity correction split in proportion to their squared radii.

The tree is built over ``position + velocity``: collisions are resolved for
where nodes are about to be, not where they are. Velocities are updated in
place while iterating, so later nodes see the corrections already applied to
earlier ones; the result depends mildly on node order.
"""

from __future__ import annotations

import warnings
from typing import TYPE_CHECKING, Callable, Hashable, Optional

import numpy as np

from ..spatial.tree import DEFAULT_CLUSTER_DISTANCE, NDTree
from ..validation import ValidationError, validate_iterations
from ..vector import jiggled
from .base import Force, PerNodeValue, resolve_per_node

if TYPE_CHECKING:
    from ..simulation import SimulationState


class MaxRadiusDelegate:
    """
    Tree aggregate tracking the largest radius beneath a node.

    Removing the point that holds the maximum resets the aggregate to 0
    rather than rescanning the subtree.
    """

    __slots__ = ("radius_provider", "max_node_radius")

    def __init__(
        self,
        radius_provider: Callable[[Hashable], float],
        max_node_radius: float = 0.0,
    ) -> None:
        self.radius_provider = radius_provider
        self.max_node_radius = max_node_radius

    def did_add_node(self, node_id: Hashable, position: np.ndarray) -> None:
        self.max_node_radius = max(self.max_node_radius, self.radius_provider(node_id))

    def did_remove_node(self, node_id: Hashable, position: np.ndarray) -> None:
        if self.radius_provider(node_id) >= self.max_node_radius:
            self.max_node_radius = 0.0

    def copy(self) -> MaxRadiusDelegate:
        return MaxRadiusDelegate(self.radius_provider, self.max_node_radius)

    def spawn(self) -> MaxRadiusDelegate:
        return MaxRadiusDelegate(self.radius_provider)


class CollideForce(Force):
    """
    Push overlapping nodes apart.

    For every pair (i, j) closer than ``r_i + r_j`` the separation is
    corrected by ``strength * (r_i + r_j - d) / d`` along their offset; node
    i takes ``r_j^2 / (r_i^2 + r_j^2)`` of the correction and node j the rest,
    so the larger node moves less. Each unordered pair is resolved once per
    iteration. Alpha is not used.

    Example:
        force = CollideForce(radius=lambda node_id: sizes[node_id], iterations=2)
        force.initialize(state)
        force.apply(state)
    """

    def __init__(
        self,
        radius: PerNodeValue = 3.0,
        strength: float = 1.0,
        iterations: int = 1,
        cluster_distance: float = DEFAULT_CLUSTER_DISTANCE,
    ) -> None:
        """
        Initialize collision force.

        Args:
            radius: Node radius, constant or callable taking a node id
            strength: Fraction of the overlap corrected per iteration (1 = all)
            iterations: Resolution passes per application
            cluster_distance: Leaf merge threshold of the tree
        """
        super().__init__()
        self._radius: PerNodeValue = radius
        self._strength: float = max(0.0, float(strength))
        self._iterations: int = validate_iterations(int(iterations))
        self._cluster_distance: float = max(0.0, float(cluster_distance))
        self._radii: Optional[np.ndarray] = None

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def strength(self) -> float:
        """Get correction strength."""
        return self._strength

    @strength.setter
    def strength(self, value: float) -> None:
        """Set correction strength (clamped to >= 0)."""
        self._strength = max(0.0, float(value))

    @property
    def iterations(self) -> int:
        """Get resolution passes per application."""
        return self._iterations

    @iterations.setter
    def iterations(self, value: int) -> None:
        """Set resolution passes per application (minimum 1)."""
        self._iterations = validate_iterations(int(value))

    @property
    def radii(self) -> Optional[np.ndarray]:
        """Per-node radii computed by ``initialize()``."""
        return self._radii

    # -------------------------------------------------------------------------
    # Force Implementation
    # -------------------------------------------------------------------------

    def initialize(self, state: SimulationState) -> None:
        """
        Precompute node radii.

        Raises:
            ValidationError: If any radius is negative
        """
        radii = resolve_per_node(self._radius, state.node_ids)
        if np.any(radii < 0):
            raise ValidationError(f"radius must be >= 0, got {radii.min()}")
        if radii.size > 0 and not np.any(radii > 0):
            warnings.warn(
                "Every collide radius is 0; the collide force will have no effect.",
                UserWarning,
                stacklevel=2,
            )
        self._radii = radii
        super().initialize(state)

    def build_tree(self, state: SimulationState) -> NDTree[MaxRadiusDelegate]:
        """Build the max-radius tree over the displaced positions."""
        self._check_initialized(state)
        radii = self._radii
        assert radii is not None
        if callable(self._radius):
            delegate = MaxRadiusDelegate(lambda index: radii[index])
        else:
            r = float(self._radius)
            delegate = MaxRadiusDelegate(lambda _: r)
        return NDTree.build(state.positions + state.velocities, delegate, self._cluster_distance)

    def apply(self, state: SimulationState) -> None:
        """Resolve overlaps ``iterations`` times, updating velocities in place."""
        self._check_initialized(state)
        if state.node_count == 0:
            return
        for _ in range(self._iterations):
            self._resolve(state)

    def _resolve(self, state: SimulationState) -> None:
        tree = self.build_tree(state)
        radii = self._radii
        assert radii is not None
        positions = state.positions
        velocities = state.velocities
        strength = self._strength
        rng = state.rng

        for i in range(state.node_count):
            ri = radii[i]
            ri2 = ri * ri
            displaced = positions[i] + velocities[i]

            def resolve(t: NDTree[MaxRadiusDelegate]) -> bool:
                if t.children is None:
                    for j in t.node_indices:
                        # Visit each unordered pair once.
                        if j <= i:
                            continue
                        rj = radii[j]
                        delta_r = ri + rj
                        delta = displaced - (positions[j] + velocities[j])
                        if float(np.dot(delta, delta)) < delta_r * delta_r:
                            delta = jiggled(delta, rng)
                            distance = float(np.sqrt(np.dot(delta, delta)))
                            correction = (delta_r - distance) / distance * strength
                            rj2 = rj * rj
                            k = rj2 / (ri2 + rj2)
                            delta *= correction
                            velocities[i] += delta * k
                            velocities[j] -= delta * (1 - k)
                    return False

                reach = t.delegate.max_node_radius + ri
                if np.any(t.box.p0 > displaced + reach) or np.any(t.box.p1 < displaced - reach):
                    return False
                return True

            tree.visit(resolve)


__all__ = ["MaxRadiusDelegate", "CollideForce"]
