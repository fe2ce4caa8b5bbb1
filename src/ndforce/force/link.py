"""
Link (spring) force between connected nodes.

Each link behaves as a spring with a rest length: connected nodes are pulled
together when farther apart than ``distance`` and pushed apart when closer.
The correction is split between the endpoints by degree, so that hubs move
less than leaves. O(m) per application for m links.
"""

from __future__ import annotations

import math
import warnings
from typing import TYPE_CHECKING, Any, Optional, Sequence, Union

import numpy as np

from ..validation import ValidationError, validate_iterations, validate_link_indices
from ..vector import jiggled
from .base import Force

if TYPE_CHECKING:
    from ..simulation import SimulationState

PerLinkValue = Union[float, Sequence[float]]
"""A constant shared by every link, or one value per link."""


class LinkForce(Force):
    """
    Spring force along links.

    For a link (s, t) with offset ``x = (p_t + v_t) - (p_s + v_s)``:

        l = (|x| - distance) / |x| * alpha * strength
        v_t -= x * l * bias
        v_s += x * l * (1 - bias)

    where ``bias = degree(s) / (degree(s) + degree(t))``. The default strength
    of a link is ``1 / min(degree(s), degree(t))``.

    Example:
        force = LinkForce([(0, 1), (1, 2)], distance=50.0)
    """

    def __init__(
        self,
        links: Sequence[Any],
        distance: PerLinkValue = 30.0,
        strength: Optional[PerLinkValue] = None,
        iterations: int = 1,
    ) -> None:
        """
        Initialize link force.

        Args:
            links: (source, target) index pairs, Link objects or dicts
            distance: Rest length, constant or one value per link
            strength: Spring strength, constant or one value per link.
                If None, derived from node degrees.
            iterations: Passes per application
        """
        super().__init__()
        self._links: list[tuple[int, int]] = [_endpoints(link) for link in links]
        self._distance: PerLinkValue = distance
        self._strength: Optional[PerLinkValue] = strength
        self._iterations: int = validate_iterations(int(iterations))

        self._active: list[int] = []
        self._distances: Optional[np.ndarray] = None
        self._strengths: Optional[np.ndarray] = None
        self._bias: Optional[np.ndarray] = None

    @property
    def links(self) -> list[tuple[int, int]]:
        """Get (source, target) index pairs."""
        return list(self._links)

    @property
    def iterations(self) -> int:
        """Get passes per application."""
        return self._iterations

    @iterations.setter
    def iterations(self, value: int) -> None:
        """Set passes per application (minimum 1)."""
        self._iterations = validate_iterations(int(value))

    @property
    def strengths(self) -> Optional[np.ndarray]:
        """Per-link strengths computed by ``initialize()``."""
        return self._strengths

    def initialize(self, state: SimulationState) -> None:
        """
        Precompute degrees, bias, rest lengths and strengths.

        Self-loops are ignored with a warning.

        Raises:
            InvalidLinkError: If a link references a node outside the state
            ValidationError: If a per-link sequence has the wrong length
        """
        n = state.node_count
        validate_link_indices(self._links, n, strict=True)

        self._active = [k for k, (s, t) in enumerate(self._links) if s != t]
        if len(self._active) < len(self._links):
            warnings.warn(
                f"Ignoring {len(self._links) - len(self._active)} self-loop link(s) "
                "in link force.",
                UserWarning,
                stacklevel=2,
            )

        degree = np.zeros(n, dtype=np.float64)
        for k in self._active:
            s, t = self._links[k]
            degree[s] += 1
            degree[t] += 1

        m = len(self._links)
        bias = np.zeros(m, dtype=np.float64)
        default_strength = np.zeros(m, dtype=np.float64)
        for k in self._active:
            s, t = self._links[k]
            bias[k] = degree[s] / (degree[s] + degree[t])
            default_strength[k] = 1.0 / min(degree[s], degree[t])

        self._bias = bias
        self._distances = _per_link(self._distance, m, "distance")
        if self._strength is None:
            self._strengths = default_strength
        else:
            self._strengths = _per_link(self._strength, m, "strength")
        super().initialize(state)

    def apply(self, state: SimulationState) -> None:
        self._check_initialized(state)
        assert self._bias is not None
        assert self._distances is not None and self._strengths is not None
        positions = state.positions
        velocities = state.velocities
        alpha = state.alpha

        for _ in range(self._iterations):
            for k in self._active:
                s, t = self._links[k]
                x = jiggled(positions[t] + velocities[t] - positions[s] - velocities[s], state.rng)
                length = math.sqrt(float(np.dot(x, x)))
                scale = (length - self._distances[k]) / length * alpha * self._strengths[k]
                x *= scale
                b = self._bias[k]
                velocities[t] -= x * b
                velocities[s] += x * (1 - b)


def _endpoints(link: Any) -> tuple[int, int]:
    """Extract (source, target) indices from a pair, Link object or dict."""
    if isinstance(link, (tuple, list)):
        source, target = link[0], link[1]
    elif isinstance(link, dict):
        source, target = link.get("source"), link.get("target")
    else:
        source, target = getattr(link, "source", None), getattr(link, "target", None)
    return _index_of(source), _index_of(target)


def _index_of(endpoint: Any) -> int:
    if isinstance(endpoint, int):
        return endpoint
    index = getattr(endpoint, "index", None)
    if index is None:
        raise ValidationError(f"Link endpoint has no index: {endpoint!r}")
    return int(index)


def _per_link(value: PerLinkValue, count: int, name: str) -> np.ndarray:
    if isinstance(value, (int, float)):
        return np.full(count, float(value), dtype=np.float64)
    values = np.array(value, dtype=np.float64)
    if values.shape != (count,):
        raise ValidationError(f"Expected {count} {name} values, got {values.shape}")
    return values


__all__ = ["LinkForce", "PerLinkValue"]
