"""
N-dimensional spatial tree with pluggable per-node aggregates.

NDTree generalizes the quadtree (D=2) and octree (D=3) to any dimension:
each internal node splits its box at the center into 2**D children, one per
corner, addressed by an integer whose bit i selects the upper half on axis i.

Points are stored in leaf buckets. A bucket holds more than one point only
when the points are within ``cluster_distance`` of each other; without this,
coincident or nearly coincident points would force unbounded subdivision.

Each node owns a delegate (see ``delegate.py``) that is updated on every
insertion and removal beneath it, so aggregates such as total mass are
always consistent with the stored points. ``visit`` walks the tree in
pre-order and lets the caller prune subtrees whose aggregate already answers
its query; Barnes-Hut and collision detection differ only in the predicate.

Usage:
    tree = NDTree.build(positions, MassDelegate(lambda i: 1.0))
    tree.visit(lambda t: t.delegate.accumulated_count > 0)
"""

from __future__ import annotations

from typing import Any, Callable, ClassVar, Generic, Hashable, Optional, Sequence

import numpy as np

from ..validation import InvalidDimensionError, ValidationError
from ..vector import as_points, as_vector
from .box import NDBox
from .delegate import DelegateT

DEFAULT_CLUSTER_DISTANCE = 1e-5


class NDTree(Generic[DelegateT]):
    """
    A node of an N-dimensional spatial tree.

    Attributes:
        box: Region covered by this node
        cluster_distance: Points closer than this share a leaf bucket
        delegate: Aggregate over every point beneath this node
        children: None for a leaf, else 2**D subtrees indexed by direction

    A node is either a leaf (no children, zero or more bucket entries) or
    internal (children, no entries), never both.
    """

    # Fixed dimensionality for specialized subclasses; None accepts any D.
    required_dimension: ClassVar[Optional[int]] = None

    __slots__ = ("box", "cluster_distance", "delegate", "children", "_entries")

    def __init__(
        self,
        box: NDBox,
        delegate: DelegateT,
        cluster_distance: float = DEFAULT_CLUSTER_DISTANCE,
    ) -> None:
        """
        Create an empty tree over ``box``.

        Args:
            box: Region the tree covers. Every side must be non-empty.
            delegate: Aggregate for the root; children get ``delegate.spawn()``
            cluster_distance: Euclidean distance under which points are
                merged into one bucket instead of splitting the leaf

        Raises:
            InvalidDimensionError: If a specialized tree gets the wrong D
            ValidationError: If the box is degenerate or cluster_distance < 0
        """
        if self.required_dimension is not None and box.dimension != self.required_dimension:
            raise InvalidDimensionError(
                f"{type(self).__name__} requires dimension {self.required_dimension}, "
                f"got {box.dimension}"
            )
        if np.any(box.p1 <= box.p0):
            raise ValidationError(f"Tree box must have positive extent on every axis, got {box}")
        if cluster_distance < 0:
            raise ValidationError(f"cluster_distance must be >= 0, got {cluster_distance}")

        self.box = box
        self.cluster_distance = float(cluster_distance)
        self.delegate = delegate
        self.children: Optional[list[NDTree[DelegateT]]] = None
        self._entries: list[tuple[Hashable, np.ndarray]] = []

    @classmethod
    def build(
        cls,
        points: Any,
        delegate: DelegateT,
        cluster_distance: float = DEFAULT_CLUSTER_DISTANCE,
    ) -> NDTree[DelegateT]:
        """
        Build a tree over the covering box of ``points``.

        Row ``i`` of ``points`` is inserted with id ``i``, in order.

        Args:
            points: Non-empty (n, D) array or sequence of points
            delegate: Root aggregate
            cluster_distance: Leaf merge threshold

        Returns:
            The populated tree

        Raises:
            EmptyPointSetError: If ``points`` is empty
        """
        pts = as_points(points)
        tree = cls(NDBox.cover(pts), delegate, cluster_distance)
        for i in range(pts.shape[0]):
            tree.add_without_cover(i, pts[i])
        return tree

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def dimension(self) -> int:
        """Number of axes of the tree's space."""
        return self.box.dimension

    @property
    def direction_count(self) -> int:
        """Number of children of an internal node (2**D)."""
        return 1 << self.box.dimension

    @property
    def entries(self) -> list[tuple[Hashable, np.ndarray]]:
        """(node_id, position) pairs stored directly in this leaf."""
        return list(self._entries)

    @property
    def node_indices(self) -> list[Hashable]:
        """Ids stored directly in this leaf."""
        return [node_id for node_id, _ in self._entries]

    @property
    def node_position(self) -> Optional[np.ndarray]:
        """Position of the first point in this leaf, or None if there is none."""
        if not self._entries:
            return None
        return self._entries[0][1]

    @property
    def is_leaf(self) -> bool:
        """True if this node has no children."""
        return self.children is None

    @property
    def is_internal(self) -> bool:
        """True if this node has been subdivided."""
        return self.children is not None

    @property
    def is_empty_leaf(self) -> bool:
        """True for a leaf with no points."""
        return self.children is None and not self._entries

    @property
    def is_filled_leaf(self) -> bool:
        """True for a leaf holding at least one point."""
        return self.children is None and bool(self._entries)

    @property
    def count(self) -> int:
        """Number of points stored beneath this node."""
        if self.children is None:
            return len(self._entries)
        return sum(child.count for child in self.children)

    # -------------------------------------------------------------------------
    # Insertion / removal
    # -------------------------------------------------------------------------

    def add(self, node_id: Hashable, position: Sequence[float]) -> None:
        """
        Insert a point, growing the tree's box first if it lies outside.

        Raises:
            InvalidDimensionError: If the position has the wrong dimension
            ValidationError: If the position is not finite
        """
        p = self._checked_position(position)
        self.cover(p)
        self._insert(node_id, p)

    def add_without_cover(self, node_id: Hashable, position: Sequence[float]) -> None:
        """
        Insert a point known to lie inside the tree's box.

        Every delegate on the path from this node to the receiving leaf sees
        ``did_add_node``. A filled leaf subdivides when the new point is
        farther than ``cluster_distance`` from any resident.
        """
        self._insert(node_id, self._checked_position(position))

    def remove(self, node_id: Hashable, position: Sequence[float]) -> bool:
        """
        Remove a point previously inserted at ``position``.

        The leaf is found by following ``position``; every delegate on the
        path sees ``did_remove_node`` with the stored position. Leaves are not
        merged back.

        Returns:
            True if the point was found and removed
        """
        p = self._checked_position(position)
        path: list[NDTree[DelegateT]] = []
        node = self
        while node.children is not None:
            path.append(node)
            node = node.children[node._direction_of(p)]

        for k, (entry_id, _) in enumerate(node._entries):
            if entry_id == node_id:
                _, stored = node._entries.pop(k)
                path.append(node)
                for t in path:
                    t.delegate.did_remove_node(node_id, stored)
                return True
        return False

    def cover(self, point: Sequence[float]) -> None:
        """
        Grow the box until it contains ``point``.

        Each step doubles the box towards the point; the current contents
        become the child at the opposite corner, carrying a copy of the
        delegate. The root delegate is unchanged since no point moved.
        """
        p = as_vector(point, self.dimension)
        while not self.box.contains(p):
            direction = 0
            for i in range(self.dimension):
                if p[i] >= self.box.p0[i]:
                    direction |= 1 << i
            self._expand_towards(direction)

    # -------------------------------------------------------------------------
    # Traversal
    # -------------------------------------------------------------------------

    def visit(self, predicate: Callable[[NDTree[DelegateT]], bool]) -> None:
        """
        Pre-order traversal with caller-controlled pruning.

        ``predicate`` is called on every reached node. For an internal node,
        True means descend into its children and False prunes the subtree.
        Leaves have no children, so the return value is ignored there.
        """
        if predicate(self) and self.children is not None:
            for child in self.children:
                child.visit(predicate)

    def visit_post_order(self, callback: Callable[[NDTree[DelegateT]], None]) -> None:
        """Visit every node, children before their parent."""
        if self.children is not None:
            for child in self.children:
                child.visit_post_order(callback)
        callback(self)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _checked_position(self, position: Sequence[float]) -> np.ndarray:
        p = as_vector(position, self.dimension)
        if not np.all(np.isfinite(p)):
            raise ValidationError(f"Position must be finite, got {p.tolist()}")
        return p

    def _insert(self, node_id: Hashable, position: np.ndarray) -> None:
        node = self
        while True:
            if node.children is not None:
                node.delegate.did_add_node(node_id, position)
                node = node.children[node._direction_of(position)]
            elif not node._entries or node._joins_cluster(position):
                node._entries.append((node_id, position))
                node.delegate.did_add_node(node_id, position)
                return
            else:
                # Residents are redistributed; the new point then takes the
                # internal-node branch on the next pass.
                node._subdivide()

    def _joins_cluster(self, position: np.ndarray) -> bool:
        if not self._can_split():
            return True
        limit = self.cluster_distance * self.cluster_distance
        for _, resident in self._entries:
            d = resident - position
            if float(np.dot(d, d)) > limit:
                return False
        return True

    def _can_split(self) -> bool:
        center = self.box.center
        return bool(np.all(self.box.p0 < center) and np.all(center < self.box.p1))

    def _direction_of(self, position: np.ndarray) -> int:
        center = self.box.center
        direction = 0
        for i in range(self.dimension):
            if position[i] >= center[i]:
                direction |= 1 << i
        return direction

    def _spawn_children(self, box: NDBox) -> list[NDTree[DelegateT]]:
        center = box.center
        return [
            self._make_node(NDBox(box.corner(direction), center), self.delegate.spawn())
            for direction in range(1 << box.dimension)
        ]

    def _make_node(self, box: NDBox, delegate: DelegateT) -> NDTree[DelegateT]:
        return type(self)(box, delegate, self.cluster_distance)

    def _subdivide(self) -> None:
        entries = self._entries
        self._entries = []
        self.children = self._spawn_children(self.box)
        for node_id, position in entries:
            self.children[self._direction_of(position)]._insert(node_id, position)

    def _expand_towards(self, direction: int) -> None:
        nailed_direction = (self.direction_count - 1) ^ direction
        nailed_corner = self.box.corner(nailed_direction)
        expanded_corner = self.box.corner(direction) * 2 - nailed_corner
        new_box = NDBox(nailed_corner, expanded_corner)

        current = self._make_node(self.box, self.delegate.copy())
        current.children = self.children
        current._entries = self._entries

        children = self._spawn_children(new_box)
        children[nailed_direction] = current
        self.box = new_box
        self.children = children
        self._entries = []

    def __repr__(self) -> str:
        kind = "internal" if self.children is not None else "leaf"
        return f"{type(self).__name__}({kind}, box={self.box!r}, count={self.count})"


class QuadTree(NDTree[DelegateT]):
    """NDTree restricted to two dimensions (4 children per node)."""

    required_dimension = 2
    __slots__ = ()


class OctTree(NDTree[DelegateT]):
    """NDTree restricted to three dimensions (8 children per node)."""

    required_dimension = 3
    __slots__ = ()


__all__ = ["NDTree", "QuadTree", "OctTree", "DEFAULT_CLUSTER_DISTANCE"]
