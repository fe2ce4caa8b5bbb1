"""
Aggregate delegate protocol for NDTree nodes.

Every node of an NDTree owns one delegate: a caller-defined summary of the
points stored beneath it (total mass and centroid, maximum radius, ...).
The tree calls ``did_add_node``/``did_remove_node`` on each delegate along an
insertion or removal path, so aggregates stay consistent without a separate
post-order pass.
"""

from __future__ import annotations

from typing import Hashable, Protocol, TypeVar

import numpy as np

DelegateT = TypeVar("DelegateT", bound="TreeDelegate")


class TreeDelegate(Protocol):
    """
    Capability contract for per-node aggregates.

    Implementations:
        did_add_node: Fold a point into the aggregate
        did_remove_node: Take a point out of the aggregate
        copy: Independent snapshot with the same state
        spawn: Fresh, empty aggregate with the same configuration
            (used when a leaf subdivides into children)
    """

    def did_add_node(self, node_id: Hashable, position: np.ndarray) -> None: ...

    def did_remove_node(self, node_id: Hashable, position: np.ndarray) -> None: ...

    def copy(self: DelegateT) -> DelegateT: ...

    def spawn(self: DelegateT) -> DelegateT: ...


__all__ = ["TreeDelegate", "DelegateT"]
