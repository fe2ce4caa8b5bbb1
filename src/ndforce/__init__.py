"""
ndforce: N-dimensional force-directed simulation and graph layout.

This package simulates forces on points in any dimension to compute
force-directed layouts. The pairwise forces are built on an N-dimensional
spatial tree with pluggable per-node aggregates.

Available components:
- spatial: NDBox, NDTree (with QuadTree/OctTree specializations)
- force: Many-body (Barnes-Hut), collide, link, center and direction forces
- simulation: Simulation state buffers and tick loop
- layout: ForceSimulationLayout for Node/Link graphs
"""

__version__ = "0.1.0"

# Base classes for building layouts
from .base import BaseLayout, IterativeLayout

# Forces
from .force import (
    CenterForce,
    CollideForce,
    DirectionForce,
    Force,
    LinkForce,
    ManyBodyForce,
    MassDelegate,
    MaxRadiusDelegate,
    PositionForce,
)

# Graph layout
from .layout import ForceSimulationLayout

# Metrics for layout quality evaluation
from .metrics import edge_length_variance, overlap_count, total_overlap

# Simulation
from .simulation import Simulation, SimulationState

# Spatial data structures
from .spatial import NDBox, NDTree, OctTree, QuadTree, TreeDelegate
from .types import Event, EventType, Link, LinkLike, Node, NodeLike, SizeType

# Validation utilities
from .validation import (
    EmptyPointSetError,
    ForceNotInitializedError,
    InvalidCanvasSizeError,
    InvalidDimensionError,
    InvalidLinkError,
    ValidationError,
)

__all__ = [
    # Version
    "__version__",
    # Shared types
    "Node",
    "Link",
    "EventType",
    "Event",
    "NodeLike",
    "LinkLike",
    "SizeType",
    # Base classes
    "BaseLayout",
    "IterativeLayout",
    # Layout
    "ForceSimulationLayout",
    # Simulation
    "Simulation",
    "SimulationState",
    # Forces
    "Force",
    "ManyBodyForce",
    "MassDelegate",
    "CollideForce",
    "MaxRadiusDelegate",
    "LinkForce",
    "CenterForce",
    "DirectionForce",
    "PositionForce",
    # Spatial data structures
    "NDBox",
    "NDTree",
    "QuadTree",
    "OctTree",
    "TreeDelegate",
    # Metrics
    "overlap_count",
    "total_overlap",
    "edge_length_variance",
    # Validation
    "ValidationError",
    "InvalidCanvasSizeError",
    "InvalidLinkError",
    "InvalidDimensionError",
    "EmptyPointSetError",
    "ForceNotInitializedError",
]
