"""
Input validation utilities for force simulations.

Provides the exception hierarchy and validation helpers for canvas size,
link indices, point dimensions and per-node force parameters. Raises
descriptive exceptions on invalid input.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class ValidationError(ValueError):
    """Base exception for layout validation errors."""

    pass


class InvalidCanvasSizeError(ValidationError):
    """Raised when canvas dimensions are invalid."""

    pass


class InvalidLinkError(ValidationError):
    """Raised when a link references invalid nodes."""

    pass


class InvalidDimensionError(ValidationError):
    """Raised when points do not share the expected dimensionality."""

    pass


class EmptyPointSetError(ValidationError):
    """Raised when a bounding box is requested for zero points."""

    pass


class ForceNotInitializedError(RuntimeError):
    """
    Raised when a force is applied before it was initialized for a simulation.

    Forces precompute per-node values (mass, radius, strength) in
    ``initialize()``. Applying a force without that step, or to a state with a
    different node count, is a caller ordering bug.
    """

    pass


def validate_canvas_size(size: Sequence[float]) -> tuple[float, float]:
    """
    Validate canvas size dimensions.

    Args:
        size: [width, height] sequence

    Returns:
        Validated (width, height) tuple

    Raises:
        InvalidCanvasSizeError: If dimensions are invalid
    """
    if len(size) < 2:
        raise InvalidCanvasSizeError(
            f"Canvas size must have 2 elements [width, height], got {len(size)}"
        )

    width, height = float(size[0]), float(size[1])

    if width <= 0:
        raise InvalidCanvasSizeError(f"Canvas width must be positive, got {width}")
    if height <= 0:
        raise InvalidCanvasSizeError(f"Canvas height must be positive, got {height}")

    return width, height


def validate_link_indices(
    links: Sequence[Any],
    node_count: int,
    strict: bool = True,
) -> list[tuple[int, str]]:
    """
    Validate that all link source/target indices are within bounds.

    Args:
        links: Sequence of Link objects, dicts with source/target, or
            (source, target) pairs
        node_count: Number of nodes in the graph
        strict: If True, raises on invalid. If False, returns list of issues.

    Returns:
        List of (link_index, issue_description) tuples

    Raises:
        InvalidLinkError: If strict=True and invalid links found
    """
    issues: list[tuple[int, str]] = []

    for i, link in enumerate(links):
        src = _get_index(link, "source")
        tgt = _get_index(link, "target")

        if src is None:
            issues.append((i, f"Link {i}: source is None"))
        elif src < 0 or src >= node_count:
            issues.append((i, f"Link {i}: source index {src} out of bounds [0, {node_count})"))

        if tgt is None:
            issues.append((i, f"Link {i}: target is None"))
        elif tgt < 0 or tgt >= node_count:
            issues.append((i, f"Link {i}: target index {tgt} out of bounds [0, {node_count})"))

    if strict and issues:
        msg = "Invalid link indices:\n" + "\n".join(issue[1] for issue in issues)
        raise InvalidLinkError(msg)

    return issues


def validate_iterations(iterations: int) -> int:
    """
    Validate iteration count is positive.

    Raises:
        ValidationError: If iterations < 1
    """
    if iterations < 1:
        raise ValidationError(f"iterations must be >= 1, got {iterations}")
    return iterations


def validate_alpha(alpha: float) -> float:
    """
    Validate alpha is in valid range.

    Raises:
        ValidationError: If alpha not in [0, 1]
    """
    if alpha < 0 or alpha > 1:
        raise ValidationError(f"alpha must be in [0, 1], got {alpha}")
    return alpha


def validate_positive(values: Sequence[float], name: str) -> None:
    """
    Validate that every per-node value is strictly positive.

    Args:
        values: Per-node values (masses, for example)
        name: Parameter name used in the error message

    Raises:
        ValidationError: If any value is zero, negative or NaN
    """
    for i, value in enumerate(values):
        if not value > 0:
            raise ValidationError(f"{name} must be positive, got {value} for node {i}")


def validate_axis(axis: int, dimension: int) -> int:
    """
    Validate a vector component index.

    Raises:
        InvalidDimensionError: If axis is outside [0, dimension)
    """
    if axis < 0 or axis >= dimension:
        raise InvalidDimensionError(f"axis must be in [0, {dimension}), got {axis}")
    return axis


def _get_index(obj: Any, attr: str) -> Optional[int]:
    """Extract index from int, Node, pair, or object with index attribute."""
    if isinstance(obj, (tuple, list)):
        val = obj[0] if attr == "source" else obj[1]
    elif hasattr(obj, attr):
        val = getattr(obj, attr, None)
    elif isinstance(obj, dict):
        val = obj.get(attr)
    else:
        val = None

    if val is None:
        return None
    if isinstance(val, int):
        return val
    if hasattr(val, "index"):
        return int(val.index)
    return None


__all__ = [
    "ValidationError",
    "InvalidCanvasSizeError",
    "InvalidLinkError",
    "InvalidDimensionError",
    "EmptyPointSetError",
    "ForceNotInitializedError",
    "validate_canvas_size",
    "validate_link_indices",
    "validate_iterations",
    "validate_alpha",
    "validate_positive",
    "validate_axis",
]
