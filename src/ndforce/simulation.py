"""
Simulation state and tick loop.

SimulationState holds the buffers every force reads and writes: ordered node
ids, (n, D) positions and velocities, the cooling parameter alpha, an
optional fixed-node mask and the random generator used for jitter.

Simulation owns a state and an ordered set of named forces. Each tick cools
alpha, applies the forces in insertion order, then integrates velocities
into positions with friction (velocity decay).

Example:
    state = SimulationState(positions=[[0, 0], [10, 0], [0, 10]], random_seed=1)
    sim = Simulation(state)
    sim.add_force("charge", ManyBodyForce(strength=-30))
    sim.add_force("collide", CollideForce(radius=5))
    sim.tick(100)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Hashable, Optional, Sequence

import numpy as np

from .validation import ValidationError, validate_alpha, validate_iterations
from .vector import as_points

if TYPE_CHECKING:
    from typing_extensions import Self

    from .force.base import Force


class SimulationState:
    """
    Mutable node buffers shared by all forces of a simulation.

    Attributes:
        node_ids: Ordered node identifiers, aligned with the buffers
        positions: (n, D) float array
        velocities: (n, D) float array
        alpha: Current cooling factor
        fixed: Boolean mask of nodes whose positions are pinned
        rng: numpy random generator used for jitter
    """

    def __init__(
        self,
        positions: Any,
        node_ids: Optional[Sequence[Hashable]] = None,
        velocities: Any = None,
        alpha: float = 1.0,
        fixed: Optional[Sequence[bool]] = None,
        random_seed: Optional[int] = None,
        dimension: Optional[int] = None,
    ) -> None:
        """
        Initialize simulation state.

        Args:
            positions: (n, D) array or sequence of points
            node_ids: Identifiers passed to per-node parameter callables.
                Defaults to ``range(n)``.
            velocities: Initial velocities. Defaults to zero.
            alpha: Initial alpha (0 to 1)
            fixed: Per-node flags; fixed nodes keep their position
            random_seed: Seed for the jitter generator
            dimension: Dimension for an empty state (inferred otherwise)

        Raises:
            InvalidDimensionError: If buffers have inconsistent shapes
            ValidationError: If ids/flags do not match the node count
        """
        self.positions: np.ndarray = as_points(positions, dimension)
        n, d = self.positions.shape

        if velocities is None:
            self.velocities: np.ndarray = np.zeros((n, d), dtype=np.float64)
        else:
            self.velocities = as_points(velocities, d)
            if self.velocities.shape[0] != n:
                raise ValidationError(
                    f"Expected {n} velocities, got {self.velocities.shape[0]}"
                )

        self.node_ids: list[Hashable] = list(range(n)) if node_ids is None else list(node_ids)
        if len(self.node_ids) != n:
            raise ValidationError(f"Expected {n} node ids, got {len(self.node_ids)}")

        if fixed is None:
            self.fixed: np.ndarray = np.zeros(n, dtype=bool)
        else:
            self.fixed = np.array(fixed, dtype=bool)
            if self.fixed.shape != (n,):
                raise ValidationError(f"Expected {n} fixed flags, got {self.fixed.shape}")

        self.alpha: float = validate_alpha(float(alpha))
        self.rng: np.random.Generator = np.random.default_rng(random_seed)

    @property
    def node_count(self) -> int:
        """Number of nodes."""
        return int(self.positions.shape[0])

    @property
    def dimension(self) -> int:
        """Dimension of the positions."""
        return int(self.positions.shape[1])

    def __repr__(self) -> str:
        return (
            f"SimulationState(nodes={self.node_count}, dimension={self.dimension}, "
            f"alpha={self.alpha:.4f})"
        )


class Simulation:
    """
    Force simulation with alpha cooling and velocity damping.

    Per tick:
        alpha += (alpha_target - alpha) * alpha_decay
        every force is applied, in the order it was added
        velocities *= velocity_decay
        positions += velocities (fixed nodes stay put with zero velocity)

    The default ``alpha_decay`` brings alpha from 1 to ``alpha_min`` in
    about 300 ticks.
    """

    def __init__(
        self,
        state: SimulationState,
        alpha_min: float = 0.001,
        alpha_decay: Optional[float] = None,
        alpha_target: float = 0.0,
        velocity_decay: float = 0.6,
    ) -> None:
        """
        Initialize simulation.

        Args:
            state: Node buffers to simulate
            alpha_min: Alpha below which the simulation counts as converged
            alpha_decay: Cooling rate per tick (0 to 1). Defaults to
                ``1 - alpha_min ** (1 / 300)``.
            alpha_target: Value alpha cools towards
            velocity_decay: Fraction of velocity kept per tick (0 to 1)
        """
        self.state = state
        self._alpha_min: float = max(0.0, float(alpha_min))
        if alpha_decay is None:
            alpha_decay = 1 - self._alpha_min ** (1 / 300) if self._alpha_min > 0 else 0.0228
        self._alpha_decay: float = max(0.0, min(1.0, float(alpha_decay)))
        self._alpha_target: float = max(0.0, min(1.0, float(alpha_target)))
        self._velocity_decay: float = max(0.0, min(1.0, float(velocity_decay)))
        self._forces: dict[str, Force] = {}
        self._tick_count: int = 0

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def alpha(self) -> float:
        """Get current alpha."""
        return self.state.alpha

    @alpha.setter
    def alpha(self, value: float) -> None:
        """Set alpha, clamped to [0, 1]."""
        self.state.alpha = max(0.0, min(1.0, float(value)))

    @property
    def alpha_min(self) -> float:
        """Get convergence threshold."""
        return self._alpha_min

    @alpha_min.setter
    def alpha_min(self, value: float) -> None:
        """Set convergence threshold."""
        self._alpha_min = max(0.0, float(value))

    @property
    def alpha_decay(self) -> float:
        """Get cooling rate."""
        return self._alpha_decay

    @alpha_decay.setter
    def alpha_decay(self, value: float) -> None:
        """Set cooling rate, clamped to [0, 1]."""
        self._alpha_decay = max(0.0, min(1.0, float(value)))

    @property
    def alpha_target(self) -> float:
        """Get the value alpha cools towards."""
        return self._alpha_target

    @alpha_target.setter
    def alpha_target(self, value: float) -> None:
        """Set the value alpha cools towards, clamped to [0, 1]."""
        self._alpha_target = max(0.0, min(1.0, float(value)))

    @property
    def velocity_decay(self) -> float:
        """Get fraction of velocity kept per tick."""
        return self._velocity_decay

    @velocity_decay.setter
    def velocity_decay(self, value: float) -> None:
        """Set fraction of velocity kept per tick, clamped to [0, 1]."""
        self._velocity_decay = max(0.0, min(1.0, float(value)))

    @property
    def tick_count(self) -> int:
        """Number of ticks run so far."""
        return self._tick_count

    @property
    def converged(self) -> bool:
        """True once alpha has cooled below ``alpha_min``."""
        return self.state.alpha < self._alpha_min

    # -------------------------------------------------------------------------
    # Forces
    # -------------------------------------------------------------------------

    def add_force(self, name: str, force: Force) -> Self:
        """
        Register a force under ``name`` and initialize it for this state.

        Re-using a name replaces the previous force in place.

        Returns:
            self (for chaining)
        """
        force.initialize(self.state)
        self._forces[name] = force
        return self

    def remove_force(self, name: str) -> Optional[Force]:
        """Unregister and return the force called ``name``, if any."""
        return self._forces.pop(name, None)

    def force(self, name: str) -> Optional[Force]:
        """Get the force registered under ``name``."""
        return self._forces.get(name)

    @property
    def forces(self) -> dict[str, Force]:
        """Registered forces, in application order."""
        return dict(self._forces)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def tick(self, iterations: int = 1) -> Self:
        """
        Advance the simulation.

        Args:
            iterations: Number of ticks to run

        Returns:
            self (for chaining)
        """
        validate_iterations(iterations)
        state = self.state
        for _ in range(iterations):
            state.alpha += (self._alpha_target - state.alpha) * self._alpha_decay
            pinned = state.positions[state.fixed].copy()

            for force in self._forces.values():
                force.apply(state)

            state.velocities *= self._velocity_decay
            state.positions += state.velocities
            if pinned.size:
                # Positional forces (centering) may have moved fixed nodes too.
                state.positions[state.fixed] = pinned
                state.velocities[state.fixed] = 0.0
            self._tick_count += 1
        return self

    def run(self, max_ticks: int = 300) -> Self:
        """Tick until converged or ``max_ticks`` is reached."""
        for _ in range(validate_iterations(max_ticks)):
            if self.converged:
                break
            self.tick()
        return self

    def __repr__(self) -> str:
        names = ", ".join(self._forces)
        return f"Simulation({self.state!r}, forces=[{names}])"


__all__ = ["SimulationState", "Simulation"]
