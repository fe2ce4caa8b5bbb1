"""
Graph-facing types for ForceSimulationLayout.

Nodes and links are the user's view of a graph; the simulation itself only
sees (n, 2) arrays. The classmethods here turn loosely typed input (dicts,
index pairs, arbitrary objects) into the two types the layouts work with.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Callable, Optional, Sequence, TypedDict, Union

# Attributes copied from arbitrary node-like objects.
NODE_ATTRIBUTES = ("index", "x", "y", "vx", "vy", "width", "height", "radius", "fixed")


class EventType(IntEnum):
    """Layout lifecycle events: start, one tick per iteration, end."""

    start = 0
    tick = 1
    end = 2


class Event(TypedDict, total=False):
    """Event payload passed to event listeners."""

    type: EventType
    alpha: float
    listener: Optional[Callable[[], None]]


class Node:
    """
    A graph vertex mirrored into one row of the simulation buffers.

    ``x``/``y`` and ``vx``/``vy`` are read into the simulation before every
    tick and written back after it, so they can be edited between ticks.
    A nonzero ``fixed`` pins the node where it is.

    ``radius`` (or half of the larger of ``width``/``height``) is the
    collision radius. Extra keyword arguments are kept as attributes.
    """

    def __init__(self, **kwargs: Any) -> None:
        self.index: Optional[int] = kwargs.pop("index", None)
        self.x: float = kwargs.pop("x", 0.0)
        self.y: float = kwargs.pop("y", 0.0)
        self.vx: float = kwargs.pop("vx", 0.0)
        self.vy: float = kwargs.pop("vy", 0.0)
        self.width: Optional[float] = kwargs.pop("width", None)
        self.height: Optional[float] = kwargs.pop("height", None)
        self.radius: Optional[float] = kwargs.pop("radius", None)
        self.fixed: int = kwargs.pop("fixed", 0)
        self.__dict__.update(kwargs)

    @classmethod
    def coerce(cls, data: Any) -> Node:
        """Return ``data`` if it is a Node, else a Node built from a dict or object."""
        if isinstance(data, Node):
            return data
        if isinstance(data, dict):
            return cls(**data)
        return cls(**{a: getattr(data, a) for a in NODE_ATTRIBUTES if hasattr(data, a)})

    @property
    def position(self) -> tuple[float, float]:
        return (float(self.x), float(self.y))

    @property
    def velocity(self) -> tuple[float, float]:
        return (float(self.vx), float(self.vy))

    def collision_radius(self, default: float) -> float:
        """Radius for collision: explicit radius, else half the larger side, else default."""
        if self.radius is not None:
            return float(self.radius)
        sides = [s for s in (self.width, self.height) if s is not None]
        if sides:
            return max(sides) / 2
        return default

    def __repr__(self) -> str:
        return f"Node(index={self.index}, x={self.x:.2f}, y={self.y:.2f})"


class Link:
    """
    A spring between two nodes.

    Endpoints are node indices or Node objects with an index. ``length`` is
    the rest length and ``weight`` the spring strength; either may be left
    to the layout's defaults.

    Raises:
        ValueError: If source or target is None
    """

    def __init__(
        self,
        source: Union[Node, int],
        target: Union[Node, int],
        length: Optional[float] = None,
        weight: Optional[float] = None,
        **kwargs: Any,
    ) -> None:
        for name, endpoint in (("source", source), ("target", target)):
            if endpoint is None:
                raise ValueError(f"Link {name} cannot be None")

        self.source = source
        self.target = target
        self.length = length
        self.weight = weight
        self.__dict__.update(kwargs)

    @classmethod
    def coerce(cls, data: Any) -> Link:
        """
        Build a Link from a Link, a dict, a ``(source, target)`` pair or an
        object with source/target attributes.
        """
        if isinstance(data, Link):
            return data
        if isinstance(data, dict):
            return cls(**data)
        if isinstance(data, (tuple, list)):
            return cls(*data)
        return cls(
            getattr(data, "source", None),
            getattr(data, "target", None),
            getattr(data, "length", None),
            getattr(data, "weight", None),
        )

    @property
    def endpoints(self) -> tuple[Optional[int], Optional[int]]:
        """(source index, target index); None for a Node without an index."""
        return (_index_of(self.source), _index_of(self.target))

    def __repr__(self) -> str:
        src, tgt = self.endpoints
        return f"Link({src} -> {tgt})"


def _index_of(endpoint: Union[Node, int]) -> Optional[int]:
    if isinstance(endpoint, int):
        return endpoint
    return getattr(endpoint, "index", None)


# Type aliases for Pythonic API
NodeLike = Union[Node, dict[str, Any], Any]
"""Input type for nodes: Node objects, dicts, or objects with node attributes."""

LinkLike = Union[Link, dict[str, Any], tuple[int, int], Any]
"""Input type for links: Link objects, dicts, (source, target) pairs, or objects."""

SizeType = Union[tuple[float, float], list[float], Sequence[float]]
"""Canvas size: (width, height) tuple, list, or sequence."""


__all__ = [
    "EventType",
    "Event",
    "Node",
    "Link",
    "NodeLike",
    "LinkLike",
    "SizeType",
    "NODE_ATTRIBUTES",
]
