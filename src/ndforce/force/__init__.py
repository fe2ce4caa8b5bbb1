"""
Forces for force-directed simulations.

This module provides the forces a Simulation applies each tick:
- ManyBodyForce: Barnes-Hut approximated attraction/repulsion between all nodes
- CollideForce: Overlap removal between nodes with radii
- LinkForce: Springs along links
- CenterForce: Keeps the layout centered
- DirectionForce: Pulls nodes towards a coordinate on one axis
"""

from .base import Force, PerNodeValue, resolve_per_node
from .center import CenterForce
from .collide import CollideForce, MaxRadiusDelegate
from .direction import DirectionForce, PositionForce
from .link import LinkForce
from .many_body import ManyBodyForce, MassDelegate

__all__ = [
    "Force",
    "PerNodeValue",
    "resolve_per_node",
    "ManyBodyForce",
    "MassDelegate",
    "CollideForce",
    "MaxRadiusDelegate",
    "LinkForce",
    "CenterForce",
    "DirectionForce",
    "PositionForce",
]
