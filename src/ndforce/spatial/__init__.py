"""
Spatial data structures for efficient force calculations.

Provides an N-dimensional tree (quadtree/octree generalization) with
pluggable per-node aggregates, used for Barnes-Hut force approximation and
radius-bounded collision queries.
"""

from .box import NDBox
from .delegate import TreeDelegate
from .tree import DEFAULT_CLUSTER_DISTANCE, NDTree, OctTree, QuadTree

__all__ = [
    "NDBox",
    "TreeDelegate",
    "NDTree",
    "QuadTree",
    "OctTree",
    "DEFAULT_CLUSTER_DISTANCE",
]
