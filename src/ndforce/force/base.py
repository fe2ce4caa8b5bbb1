"""
Base class for simulation forces.

A force is configured once, initialized against a simulation state (which
precomputes per-node lookups such as mass or radius), then applied once per
tick. The state is always passed explicitly; forces never hold a reference
to the simulation that runs them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Hashable, Optional, Sequence, Union

import numpy as np

from ..validation import ForceNotInitializedError

if TYPE_CHECKING:
    from ..simulation import SimulationState

PerNodeValue = Union[float, Callable[[Hashable], float]]
"""A constant shared by every node, or a lookup from node id to value."""


def resolve_per_node(value: PerNodeValue, node_ids: Sequence[Hashable]) -> np.ndarray:
    """
    Evaluate a constant-or-callable parameter for every node.

    Args:
        value: Constant, or callable taking a node id
        node_ids: Ordered node ids of the simulation

    Returns:
        Array of one float per node, aligned with ``node_ids``
    """
    if callable(value):
        return np.array([float(value(node_id)) for node_id in node_ids], dtype=np.float64)
    return np.full(len(node_ids), float(value), dtype=np.float64)


class Force(ABC):
    """
    Abstract base class for forces.

    Subclasses precompute their per-node values in ``initialize()`` (calling
    ``super().initialize(state)``) and implement ``apply()``, starting it
    with ``self._check_initialized(state)``.
    """

    def __init__(self) -> None:
        self._node_count: Optional[int] = None

    @property
    def initialized(self) -> bool:
        """True once ``initialize()`` has run."""
        return self._node_count is not None

    def initialize(self, state: SimulationState) -> None:
        """Bind per-node parameters to the nodes of ``state``."""
        self._node_count = state.node_count

    @abstractmethod
    def apply(self, state: SimulationState) -> None:
        """
        Apply the force for one tick.

        Updates ``state.velocities`` (or ``state.positions`` for purely
        positional forces) in place.

        Raises:
            ForceNotInitializedError: If ``initialize()`` was not called for
                a state with the same nodes
        """
        pass

    def _check_initialized(self, state: SimulationState) -> None:
        if self._node_count is None:
            raise ForceNotInitializedError(
                f"{type(self).__name__} must be initialized with a simulation state before use"
            )
        if self._node_count != state.node_count:
            raise ForceNotInitializedError(
                f"{type(self).__name__} was initialized for {self._node_count} nodes, "
                f"but the simulation has {state.node_count}"
            )


__all__ = ["Force", "PerNodeValue", "resolve_per_node"]
