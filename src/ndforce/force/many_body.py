"""
Many-body force with Barnes-Hut approximation.

Every node interacts with every other node, like gravity (positive strength)
or electrostatic repulsion (negative strength). An NDTree carrying a mass
aggregate is rebuilt on each application; distant subtrees are treated as a
single body at their centroid when they pass the opening-angle test, which
reduces the cost from O(n^2) to O(n log n).

The theta parameter controls the accuracy/speed tradeoff:
- theta = 0: Exact calculation (every leaf is visited)
- theta = 0.9: Default, visually indistinguishable for layout purposes
- theta > 1: Faster but less accurate
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Callable, Hashable, Optional

import numpy as np

from ..spatial.tree import DEFAULT_CLUSTER_DISTANCE, NDTree
from ..validation import validate_positive
from ..vector import jiggled
from .base import Force, PerNodeValue, resolve_per_node

if TYPE_CHECKING:
    from ..simulation import SimulationState


class MassDelegate:
    """
    Tree aggregate tracking total mass, point count and mass-weighted position.

    Attributes:
        accumulated_mass: Sum of masses beneath the node
        accumulated_count: Number of points beneath the node
        accumulated_mass_weighted_positions: Sum of mass * position, or None
            until the first point is added
    """

    __slots__ = (
        "mass_provider",
        "accumulated_mass",
        "accumulated_count",
        "accumulated_mass_weighted_positions",
    )

    def __init__(
        self,
        mass_provider: Callable[[Hashable], float],
        accumulated_mass: float = 0.0,
        accumulated_count: int = 0,
        accumulated_mass_weighted_positions: Optional[np.ndarray] = None,
    ) -> None:
        self.mass_provider = mass_provider
        self.accumulated_mass = accumulated_mass
        self.accumulated_count = accumulated_count
        self.accumulated_mass_weighted_positions = accumulated_mass_weighted_positions

    def did_add_node(self, node_id: Hashable, position: np.ndarray) -> None:
        m = self.mass_provider(node_id)
        self.accumulated_count += 1
        self.accumulated_mass += m
        if self.accumulated_mass_weighted_positions is None:
            self.accumulated_mass_weighted_positions = position * m
        else:
            self.accumulated_mass_weighted_positions += position * m

    def did_remove_node(self, node_id: Hashable, position: np.ndarray) -> None:
        m = self.mass_provider(node_id)
        self.accumulated_count -= 1
        self.accumulated_mass -= m
        if self.accumulated_mass_weighted_positions is not None:
            self.accumulated_mass_weighted_positions -= position * m

    def copy(self) -> MassDelegate:
        weighted = self.accumulated_mass_weighted_positions
        return MassDelegate(
            self.mass_provider,
            self.accumulated_mass,
            self.accumulated_count,
            None if weighted is None else weighted.copy(),
        )

    def spawn(self) -> MassDelegate:
        return MassDelegate(self.mass_provider)

    @property
    def centroid(self) -> Optional[np.ndarray]:
        """Mass-weighted mean position, or None for an empty subtree."""
        if self.accumulated_count <= 0 or self.accumulated_mass_weighted_positions is None:
            return None
        return self.accumulated_mass_weighted_positions / self.accumulated_mass


class ManyBodyForce(Force):
    """
    Pairwise attraction or repulsion between all nodes.

    Each node i receives, from every other body (or approximated subtree)
    of mass m at offset vec:

        strength * alpha * m * vec / |vec|^2

    and its velocity changes by the accumulated force divided by its own mass.

    Example:
        force = ManyBodyForce(strength=-30.0, theta=0.9)
        force.initialize(state)
        force.apply(state)
    """

    def __init__(
        self,
        strength: float = -30.0,
        mass: PerNodeValue = 1.0,
        theta: float = 0.9,
        distance_min: float = 1.0,
        distance_max: float = math.inf,
        cluster_distance: float = DEFAULT_CLUSTER_DISTANCE,
    ) -> None:
        """
        Initialize many-body force.

        Args:
            strength: Positive attracts (gravity), negative repels (charge)
            mass: Node mass, constant or callable taking a node id. Must be
                positive.
            theta: Barnes-Hut opening angle (0 = exact)
            distance_min: Distances below this are softened to avoid
                near-singular forces
            distance_max: Bodies farther than this exert no force
            cluster_distance: Leaf merge threshold of the tree
        """
        super().__init__()
        self._strength: float = float(strength)
        self._mass: PerNodeValue = mass
        self._theta: float = max(0.0, float(theta))
        self._distance_min: float = max(0.0, float(distance_min))
        self._distance_max: float = max(0.0, float(distance_max))
        self._cluster_distance: float = max(0.0, float(cluster_distance))
        self._masses: Optional[np.ndarray] = None

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def strength(self) -> float:
        """Get force strength (negative = repulsion)."""
        return self._strength

    @strength.setter
    def strength(self, value: float) -> None:
        """Set force strength."""
        self._strength = float(value)

    @property
    def theta(self) -> float:
        """Get Barnes-Hut opening angle."""
        return self._theta

    @theta.setter
    def theta(self, value: float) -> None:
        """Set Barnes-Hut opening angle (clamped to >= 0)."""
        self._theta = max(0.0, float(value))

    @property
    def distance_min(self) -> float:
        """Get softening distance."""
        return self._distance_min

    @distance_min.setter
    def distance_min(self, value: float) -> None:
        """Set softening distance (clamped to >= 0)."""
        self._distance_min = max(0.0, float(value))

    @property
    def distance_max(self) -> float:
        """Get cutoff distance."""
        return self._distance_max

    @distance_max.setter
    def distance_max(self, value: float) -> None:
        """Set cutoff distance (clamped to >= 0)."""
        self._distance_max = max(0.0, float(value))

    @property
    def masses(self) -> Optional[np.ndarray]:
        """Per-node masses computed by ``initialize()``."""
        return self._masses

    # -------------------------------------------------------------------------
    # Force Implementation
    # -------------------------------------------------------------------------

    def initialize(self, state: SimulationState) -> None:
        """
        Precompute node masses.

        Raises:
            ValidationError: If any mass is not positive
        """
        masses = resolve_per_node(self._mass, state.node_ids)
        validate_positive(masses, "mass")
        self._masses = masses
        super().initialize(state)

    def build_tree(self, state: SimulationState) -> NDTree[MassDelegate]:
        """Build the mass-aggregate tree over the current positions."""
        self._check_initialized(state)
        masses = self._masses
        assert masses is not None
        if callable(self._mass):
            delegate = MassDelegate(lambda index: masses[index])
        else:
            m = float(self._mass)
            delegate = MassDelegate(lambda _: m)
        return NDTree.build(state.positions, delegate, self._cluster_distance)

    def calculate_force(self, state: SimulationState) -> np.ndarray:
        """
        Compute the accumulated force on every node without applying it.

        Returns:
            (n, D) array of forces; velocities are not modified

        Raises:
            ForceNotInitializedError: If ``initialize()`` was not called
        """
        self._check_initialized(state)
        positions = state.positions
        forces = np.zeros_like(positions)
        if state.node_count == 0:
            return forces

        tree = self.build_tree(state)

        alpha = state.alpha
        strength = self._strength
        theta2 = self._theta * self._theta
        distance_min2 = self._distance_min * self._distance_min
        distance_max2 = self._distance_max * self._distance_max
        rng = state.rng

        for i in range(state.node_count):
            position = positions[i]

            def accumulate(t: NDTree[MassDelegate]) -> bool:
                aggregate = t.delegate
                if aggregate.accumulated_count <= 0:
                    return False

                centroid = aggregate.centroid
                assert centroid is not None
                vec = centroid - position
                jittered = jiggled(vec, rng)
                distance_squared = float(np.dot(jittered, jittered))

                box_width = t.box.width
                far_enough = distance_squared * theta2 > box_width * box_width

                if distance_squared < distance_min2:
                    distance_squared = math.sqrt(distance_min2 * distance_squared)

                if far_enough:
                    if distance_squared < distance_max2:
                        k = strength * alpha * aggregate.accumulated_mass / distance_squared
                        forces[i] += vec * k
                    return False

                if t.children is not None:
                    return True

                # Near leaf: the whole bucket acts at its centroid unless it
                # holds the node itself.
                if i in t.node_indices:
                    return False
                if distance_squared < distance_max2:
                    k = strength * alpha * aggregate.accumulated_mass / distance_squared
                    forces[i] += vec * k
                return False

            tree.visit(accumulate)

        return forces

    def apply(self, state: SimulationState) -> None:
        """Add ``force / mass`` to every node's velocity."""
        forces = self.calculate_force(state)
        assert self._masses is not None
        state.velocities += forces / self._masses[:, np.newaxis]


__all__ = ["MassDelegate", "ManyBodyForce"]
