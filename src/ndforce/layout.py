"""
Force simulation graph layout.

ForceSimulationLayout positions the nodes of a graph by running a 2D force
simulation combining:
- Link springs pulling connected nodes to a rest length
- Many-body repulsion between all nodes (Barnes-Hut approximated)
- Optional collision avoidance using each node's size
- Centering on the canvas

Nodes are synchronized with the simulation buffers before and after every
tick, so tick callbacks can animate the layout and edits between ticks stick.
"""

from __future__ import annotations

import math
from typing import Any, Optional, Sequence

from .base import Callback, IterativeLayout
from .force.center import CenterForce
from .force.collide import CollideForce
from .force.link import LinkForce
from .force.many_body import ManyBodyForce
from .simulation import Simulation
from .types import LinkLike, NodeLike, SizeType

# Collision radius for nodes without radius, width or height.
DEFAULT_NODE_RADIUS = 5.0


class ForceSimulationLayout(IterativeLayout):
    """
    Force-directed graph layout driven by a force simulation.

    Example:
        layout = ForceSimulationLayout(
            nodes=[{'x': 0, 'y': 0}, {'x': 1, 'y': 0}, {'x': 0, 'y': 1}],
            links=[{'source': 0, 'target': 1}, {'source': 1, 'target': 2}],
            size=(800, 600),
            collide=True,
        )
        layout.run()

        for node in layout.nodes:
            print(f"Node {node.index}: ({node.x}, {node.y})")
    """

    def __init__(
        self,
        *,
        nodes: Optional[Sequence[NodeLike]] = None,
        links: Optional[Sequence[LinkLike]] = None,
        size: SizeType = (1.0, 1.0),
        random_seed: Optional[int] = None,
        on_start: Optional[Callback] = None,
        on_tick: Optional[Callback] = None,
        on_end: Optional[Callback] = None,
        # IterativeLayout parameters
        alpha: float = 1.0,
        alpha_min: float = 0.001,
        alpha_decay: Optional[float] = None,
        iterations: int = 300,
        # Simulation parameters
        velocity_decay: float = 0.6,
        link_distance: float = 30.0,
        link_strength: Optional[float] = None,
        charge_strength: float = -30.0,
        theta: float = 0.9,
        distance_min: float = 1.0,
        distance_max: float = math.inf,
        collide: bool = False,
        collide_radius: Optional[float] = None,
        collide_strength: float = 1.0,
        collide_iterations: int = 1,
        center_strength: float = 1.0,
    ) -> None:
        """
        Initialize force simulation layout.

        Args:
            nodes: List of nodes
            links: List of links
            size: Canvas size as (width, height)
            random_seed: Random seed for reproducible layouts
            on_start: Callback for start event
            on_tick: Callback for tick event
            on_end: Callback for end event
            alpha: Initial alpha (0 to 1)
            alpha_min: Minimum alpha for convergence threshold
            alpha_decay: Alpha decay rate per iteration (0 to 1)
            iterations: Maximum number of iterations
            velocity_decay: Fraction of velocity kept per tick (0 to 1)
            link_distance: Rest length for links without ``length``
            link_strength: Spring strength for every link. If None, links use
                their ``weight`` when any link has one (1.0 otherwise), or a
                degree-based default when none do.
            charge_strength: Many-body strength (negative = repulsion).
                0 disables the force.
            theta: Barnes-Hut opening angle (0 = exact)
            distance_min: Many-body softening distance
            distance_max: Many-body cutoff distance
            collide: Enable collision avoidance
            collide_radius: Radius for every node. If None, each node's
                radius (or half its larger side) is used.
            collide_strength: Fraction of overlap corrected per pass
            collide_iterations: Collision passes per tick
            center_strength: Centering strength (0 to 1). 0 disables the force.
        """
        super().__init__(
            nodes=nodes,
            links=links,
            size=size,
            random_seed=random_seed,
            on_start=on_start,
            on_tick=on_tick,
            on_end=on_end,
            alpha=alpha,
            alpha_min=alpha_min,
            alpha_decay=alpha_decay,
            iterations=iterations,
            velocity_decay=velocity_decay,
        )

        self._link_distance: float = max(0.0, float(link_distance))
        self._link_strength: Optional[float] = (
            None if link_strength is None else float(link_strength)
        )
        self._charge_strength: float = float(charge_strength)
        self._theta: float = max(0.0, float(theta))
        self._distance_min: float = max(0.0, float(distance_min))
        self._distance_max: float = max(0.0, float(distance_max))
        self._collide: bool = bool(collide)
        self._collide_radius: Optional[float] = (
            None if collide_radius is None else max(0.0, float(collide_radius))
        )
        self._collide_strength: float = max(0.0, float(collide_strength))
        self._collide_iterations: int = max(1, int(collide_iterations))
        self._center_strength: float = max(0.0, min(1.0, float(center_strength)))

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def link_distance(self) -> float:
        """Get default link rest length."""
        return self._link_distance

    @link_distance.setter
    def link_distance(self, value: float) -> None:
        """Set default link rest length."""
        self._link_distance = max(0.0, float(value))

    @property
    def charge_strength(self) -> float:
        """Get many-body strength."""
        return self._charge_strength

    @charge_strength.setter
    def charge_strength(self, value: float) -> None:
        """Set many-body strength."""
        self._charge_strength = float(value)

    @property
    def theta(self) -> float:
        """Get Barnes-Hut opening angle."""
        return self._theta

    @theta.setter
    def theta(self, value: float) -> None:
        """Set Barnes-Hut opening angle."""
        self._theta = max(0.0, float(value))

    @property
    def collide(self) -> bool:
        """Get whether collision avoidance is enabled."""
        return self._collide

    @collide.setter
    def collide(self, value: bool) -> None:
        """Enable/disable collision avoidance."""
        self._collide = bool(value)

    @property
    def collide_radius(self) -> Optional[float]:
        """Get fixed collision radius (None = per-node size)."""
        return self._collide_radius

    @collide_radius.setter
    def collide_radius(self, value: Optional[float]) -> None:
        """Set fixed collision radius."""
        self._collide_radius = None if value is None else max(0.0, float(value))

    # -------------------------------------------------------------------------
    # Layout Implementation
    # -------------------------------------------------------------------------

    def _add_forces(self, sim: Simulation) -> None:
        """Register link, charge, collide and center forces as configured."""
        if self._links:
            distances = [
                self._link_distance if l.length is None else float(l.length) for l in self._links
            ]
            strength: Optional[Any] = self._link_strength
            if strength is None and any(l.weight is not None for l in self._links):
                strength = [1.0 if l.weight is None else float(l.weight) for l in self._links]
            sim.add_force(
                "link", LinkForce(self.link_indices(), distance=distances, strength=strength)
            )

        if self._charge_strength != 0:
            sim.add_force(
                "charge",
                ManyBodyForce(
                    strength=self._charge_strength,
                    theta=self._theta,
                    distance_min=self._distance_min,
                    distance_max=self._distance_max,
                ),
            )

        if self._collide:
            radius: Any = self._collide_radius
            if radius is None:
                nodes = self._nodes
                radius = lambda index: nodes[index].collision_radius(DEFAULT_NODE_RADIUS)  # noqa: E731

            sim.add_force(
                "collide",
                CollideForce(
                    radius=radius,
                    strength=self._collide_strength,
                    iterations=self._collide_iterations,
                ),
            )

        if self._center_strength > 0:
            w, h = self._canvas_size
            sim.add_force("center", CenterForce(center=(w / 2, h / 2), strength=self._center_strength))


__all__ = ["ForceSimulationLayout", "DEFAULT_NODE_RADIUS"]
