"""
Layout quality metrics.

Provides quantitative measures of how well a force layout satisfied its
constraints:
- Overlap count: Number of node pairs closer than their combined radii
- Total overlap: Summed penetration depth over overlapping pairs
- Edge length variance: Uniformity of link lengths

All metrics work on (n, D) position arrays from any simulation, so they
apply in every dimension.
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from .vector import as_points


def _pairwise_penetration(positions: Any, radii: Any) -> np.ndarray:
    """Upper-triangle penetration depth ``r_i + r_j - d_ij`` for every pair."""
    pts = as_points(positions)
    n = pts.shape[0]
    r = np.broadcast_to(np.asarray(radii, dtype=np.float64), (n,))
    if n < 2:
        return np.zeros(0, dtype=np.float64)

    diff = pts[:, np.newaxis, :] - pts[np.newaxis, :, :]
    dist = np.sqrt(np.sum(diff * diff, axis=-1))
    i, j = np.triu_indices(n, k=1)
    return (r[i] + r[j]) - dist[i, j]


def overlap_count(positions: Any, radii: Any, tolerance: float = 1e-9) -> int:
    """
    Count the node pairs whose circles overlap.

    Args:
        positions: (n, D) node positions
        radii: Per-node radii, or one radius for every node
        tolerance: Penetration below this is not counted

    Returns:
        Number of overlapping pairs

    Time Complexity: O(n^2)
    """
    return int(np.count_nonzero(_pairwise_penetration(positions, radii) > tolerance))


def total_overlap(positions: Any, radii: Any) -> float:
    """
    Sum of penetration depths over all overlapping pairs.

    0.0 means no node overlaps any other.
    """
    depth = _pairwise_penetration(positions, radii)
    return float(depth[depth > 0].sum())


def edge_length_variance(positions: Any, links: Sequence[tuple[int, int]]) -> float:
    """
    Compute the variance of link lengths.

    Lower variance means more uniform edge lengths.

    Args:
        positions: (n, D) node positions
        links: (source, target) index pairs

    Returns:
        Variance of link lengths (0.0 for fewer than two links)
    """
    if len(links) < 2:
        return 0.0
    pts = as_points(positions)
    idx = np.asarray(links, dtype=np.intp)
    lengths = np.linalg.norm(pts[idx[:, 0]] - pts[idx[:, 1]], axis=1)
    return float(np.var(lengths))


__all__ = ["overlap_count", "total_overlap", "edge_length_variance"]
