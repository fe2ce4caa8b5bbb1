"""
Base classes for graph layouts driven by a force simulation.

The user's Node objects stay the source of truth. Each tick copies them into
the (n, 2) buffers of a SimulationState, advances the simulation and writes
the buffers back, so nodes can be dragged, pinned or released between ticks
(or between run() and resume()).

- BaseLayout: events, node/link normalisation and the node <-> array bridge
- IterativeLayout: owns the Simulation and its alpha-cooled tick loop;
  subclasses only register forces
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence

import numpy as np

if TYPE_CHECKING:
    from typing_extensions import Self

from .simulation import Simulation, SimulationState
from .types import Event, EventType, Link, LinkLike, Node, NodeLike, SizeType
from .validation import ValidationError, validate_canvas_size, validate_link_indices

Callback = Callable[[Optional[Event]], None]


class BaseLayout(ABC):
    """
    Abstract base class for layouts over Node/Link graphs.

    Example:
        layout = SomeLayout(nodes=nodes, links=links, size=(800, 600))
        layout.run()
        layout.node_positions()  # (n, 2) array
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
    ) -> None:
        """
        Args:
            nodes: Node objects, dicts, or objects with node attributes
            links: Link objects, dicts, (source, target) pairs, or objects
                with source/target
            size: Canvas size as (width, height)
            random_seed: Seed for initial positions and jitter
            on_start: Callback for start event
            on_tick: Callback for tick event
            on_end: Callback for end event
        """
        self._nodes: list[Node] = [Node.coerce(n) for n in nodes or ()]
        self._links: list[Link] = [Link.coerce(l) for l in links or ()]
        self._canvas_size: tuple[float, float] = validate_canvas_size(size)
        self._random_seed: Optional[int] = random_seed
        self._events: dict[EventType, Callback] = {
            event_type: callback
            for event_type, callback in (
                (EventType.start, on_start),
                (EventType.tick, on_tick),
                (EventType.end, on_end),
            )
            if callback is not None
        }

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def nodes(self) -> list[Node]:
        """Get the list of nodes."""
        return self._nodes

    @nodes.setter
    def nodes(self, value: Sequence[NodeLike]) -> None:
        self._nodes = [Node.coerce(n) for n in value]

    @property
    def links(self) -> list[Link]:
        """Get the list of links."""
        return self._links

    @links.setter
    def links(self, value: Sequence[LinkLike]) -> None:
        self._links = [Link.coerce(l) for l in value]

    @property
    def size(self) -> tuple[float, float]:
        """Get canvas size as (width, height)."""
        return self._canvas_size

    @size.setter
    def size(self, value: SizeType) -> None:
        """
        Set canvas size.

        Raises:
            InvalidCanvasSizeError: If width or height is not positive.
        """
        self._canvas_size = validate_canvas_size(value)

    @property
    def random_seed(self) -> Optional[int]:
        return self._random_seed

    @random_seed.setter
    def random_seed(self, value: Optional[int]) -> None:
        self._random_seed = value

    # -------------------------------------------------------------------------
    # Event System
    # -------------------------------------------------------------------------

    def on(self, event: EventType | str, callback: Callback) -> Self:
        """Subscribe to ``event`` (EventType or its name). Returns self."""
        if isinstance(event, str):
            event = EventType[event]
        self._events[event] = callback
        return self

    def trigger(self, event: Event) -> None:
        """Call the callback registered for the event's type, if any."""
        callback = self._events.get(event.get("type"))  # type: ignore[arg-type]
        if callback is not None:
            callback(event)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> Self:
        """
        Check that all links point at existing nodes.

        Called by run(); call it earlier to fail fast.

        Raises:
            InvalidLinkError: If any link references an invalid node index.
        """
        validate_link_indices(self._links, len(self._nodes), strict=True)
        return self

    @abstractmethod
    def run(self, **kwargs: Any) -> Self:
        """Run the layout algorithm and return self."""

    def stop(self) -> Self:
        return self

    # -------------------------------------------------------------------------
    # Node <-> array bridge
    # -------------------------------------------------------------------------

    def node_positions(self) -> np.ndarray:
        """Current node positions as an (n, 2) array."""
        return np.array([n.position for n in self._nodes], dtype=np.float64).reshape(-1, 2)

    def link_indices(self) -> list[tuple[int, int]]:
        """(source, target) index pairs of the links, in order."""
        return [link.endpoints for link in self._links]  # type: ignore[misc]

    def _read_nodes(self, state: SimulationState) -> None:
        """Copy node positions, velocities and fixed flags into ``state``."""
        if len(self._nodes) != state.node_count:
            raise ValidationError(
                f"Layout has {len(self._nodes)} nodes but its simulation has "
                f"{state.node_count}; call run() after replacing nodes"
            )
        for i, node in enumerate(self._nodes):
            state.positions[i] = node.position
            state.velocities[i] = node.velocity
            state.fixed[i] = bool(node.fixed)

    def _write_nodes(self, state: SimulationState) -> None:
        """Copy simulated positions and velocities back to the nodes."""
        for node, (x, y), (vx, vy) in zip(self._nodes, state.positions, state.velocities):
            node.x, node.y = float(x), float(y)
            node.vx, node.vy = float(vx), float(vy)

    def _initialize_indices(self) -> None:
        """Assign indices to nodes that don't have them."""
        for i, node in enumerate(self._nodes):
            if node.index is None:
                node.index = i

    def _initial_positions(self, random_init: bool = True) -> np.ndarray:
        """
        Starting positions for the simulation.

        Free nodes are scattered uniformly over the canvas: all of them when
        ``random_init`` is set, otherwise only those still at the origin.
        Fixed nodes keep their positions.
        """
        positions = self.node_positions()
        free = np.array([not n.fixed for n in self._nodes], dtype=bool)
        if not random_init:
            free &= ~positions.any(axis=1)

        rng = np.random.default_rng(self._random_seed)
        positions[free] = rng.uniform((0.0, 0.0), self._canvas_size, size=(int(free.sum()), 2))
        return positions

    def _center_on_canvas(self, positions: np.ndarray) -> None:
        """Translate ``positions`` in place so their bounding box is centered on the canvas."""
        if len(positions) == 0:
            return
        middle = (positions.min(axis=0) + positions.max(axis=0)) / 2
        positions += np.asarray(self._canvas_size) / 2 - middle


class IterativeLayout(BaseLayout):
    """
    Layout that runs a Simulation tick by tick.

    run() seeds a 2D SimulationState from the nodes, lets the subclass add
    its forces via ``_add_forces()`` and ticks until alpha drops below
    ``alpha_min`` or ``iterations`` ticks have run. With no explicit
    ``alpha_decay``, alpha cools from 1 to ``alpha_min`` in ``iterations``
    ticks.
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
        alpha: float = 1.0,
        alpha_min: float = 0.001,
        alpha_decay: Optional[float] = None,
        iterations: int = 300,
        velocity_decay: float = 0.6,
    ) -> None:
        """
        Args:
            alpha: Initial alpha (0 to 1)
            alpha_min: Alpha below which the layout counts as converged
            alpha_decay: Cooling rate per tick (0 to 1)
            iterations: Maximum number of ticks per run() or resume()
            velocity_decay: Fraction of velocity kept per tick (0 to 1)

        The remaining arguments are those of BaseLayout.
        """
        super().__init__(
            nodes=nodes,
            links=links,
            size=size,
            random_seed=random_seed,
            on_start=on_start,
            on_tick=on_tick,
            on_end=on_end,
        )
        self._alpha = _unit(alpha)
        self._alpha_min = max(0.0, float(alpha_min))
        self._iterations = max(1, int(iterations))
        self._alpha_decay = None if alpha_decay is None else _unit(alpha_decay)
        self._velocity_decay = _unit(velocity_decay)
        self._simulation: Optional[Simulation] = None

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def simulation(self) -> Optional[Simulation]:
        """The simulation built by the last run(), if any."""
        return self._simulation

    @property
    def alpha(self) -> float:
        return self._alpha

    @alpha.setter
    def alpha(self, value: float) -> None:
        self._alpha = _unit(value)

    @property
    def alpha_min(self) -> float:
        return self._alpha_min

    @alpha_min.setter
    def alpha_min(self, value: float) -> None:
        self._alpha_min = max(0.0, float(value))

    @property
    def alpha_decay(self) -> float:
        """Cooling rate; derived from ``alpha_min`` and ``iterations`` unless set."""
        if self._alpha_decay is not None:
            return self._alpha_decay
        if self._alpha_min <= 0:
            return 0.0
        return 1 - self._alpha_min ** (1 / self._iterations)

    @alpha_decay.setter
    def alpha_decay(self, value: Optional[float]) -> None:
        self._alpha_decay = None if value is None else _unit(value)

    @property
    def iterations(self) -> int:
        return self._iterations

    @iterations.setter
    def iterations(self, value: int) -> None:
        self._iterations = max(1, int(value))

    @property
    def velocity_decay(self) -> float:
        """Fraction of velocity kept per tick."""
        return self._velocity_decay

    @velocity_decay.setter
    def velocity_decay(self, value: float) -> None:
        self._velocity_decay = _unit(value)

    # -------------------------------------------------------------------------
    # Lifecycle Methods
    # -------------------------------------------------------------------------

    @abstractmethod
    def _add_forces(self, sim: Simulation) -> None:
        """Register this layout's forces on a freshly built simulation."""

    def run(self, **kwargs: Any) -> Self:
        """
        Run the layout from scratch.

        Keyword Args:
            random_init: Scatter free nodes over the canvas first (default:
                True). If False only nodes at the origin are placed.
            center_graph: Center the result on the canvas (default: True)

        Raises:
            InvalidLinkError: If a link references an invalid node index
        """
        self._initialize_indices()
        self.validate()

        state = SimulationState(
            positions=self._initial_positions(kwargs.get("random_init", True)),
            velocities=[n.velocity for n in self._nodes],
            fixed=[bool(n.fixed) for n in self._nodes],
            random_seed=self._random_seed,
            dimension=2,
        )
        self._write_nodes(state)

        self._alpha = 1.0
        self._simulation = Simulation(
            state,
            alpha_min=self._alpha_min,
            alpha_decay=self.alpha_decay,
            velocity_decay=self._velocity_decay,
        )
        self._add_forces(self._simulation)

        self.trigger({"type": EventType.start, "alpha": self._alpha})
        self.kick()

        if kwargs.get("center_graph", True):
            self._center_on_canvas(state.positions)
            self._write_nodes(state)

        self.trigger({"type": EventType.end, "alpha": 0.0})
        return self

    def tick(self) -> bool:
        """
        Advance the simulation one step, syncing nodes in and out.

        Returns:
            True if converged (or nothing to simulate), False otherwise.
        """
        sim = self._simulation
        if sim is None or not self._nodes or self._alpha < self._alpha_min:
            return True

        self._read_nodes(sim.state)
        sim.alpha = self._alpha
        sim.tick()
        self._alpha = sim.alpha
        self._write_nodes(sim.state)

        self.trigger({"type": EventType.tick, "alpha": self._alpha})
        return False

    def kick(self) -> None:
        """Tick until convergence or ``iterations`` ticks."""
        for _ in range(self._iterations):
            if self.tick():
                break

    def resume(self) -> Self:
        """Reheat to alpha 0.1 and continue from the nodes' current state."""
        self._alpha = 0.1
        self.trigger({"type": EventType.start, "alpha": self._alpha})
        self.kick()
        return self

    def stop(self) -> Self:
        """Cool the layout to alpha 0 so further ticks do nothing."""
        self._alpha = 0.0
        return self


def _unit(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


__all__ = [
    "BaseLayout",
    "IterativeLayout",
]
