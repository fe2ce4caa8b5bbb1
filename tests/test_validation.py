"""Tests for the exception hierarchy and input validators."""

import pytest

from ndforce import ForceSimulationLayout, Link, Node
from ndforce.validation import (
    EmptyPointSetError,
    ForceNotInitializedError,
    InvalidCanvasSizeError,
    InvalidDimensionError,
    InvalidLinkError,
    ValidationError,
    validate_alpha,
    validate_axis,
    validate_canvas_size,
    validate_iterations,
    validate_link_indices,
    validate_positive,
)


class TestExceptionHierarchy:
    """Tests for exception base classes."""

    @pytest.mark.parametrize(
        "exc",
        [InvalidCanvasSizeError, InvalidLinkError, InvalidDimensionError, EmptyPointSetError],
    )
    def test_validation_errors_are_value_errors(self, exc):
        """Argument errors can be caught as ValueError."""
        assert issubclass(exc, ValidationError)
        assert issubclass(exc, ValueError)

    def test_not_initialized_is_runtime_error(self):
        """Ordering bugs are runtime errors, not validation errors."""
        assert issubclass(ForceNotInitializedError, RuntimeError)
        assert not issubclass(ForceNotInitializedError, ValueError)


class TestCanvasSize:
    """Tests for canvas size validation."""

    def test_converted_to_floats(self):
        assert validate_canvas_size((640, 480)) == (640.0, 480.0)

    def test_extra_elements_ignored(self):
        """Only width and height are read."""
        assert validate_canvas_size([10, 20, 30]) == (10.0, 20.0)

    @pytest.mark.parametrize(
        "size, message",
        [
            ([0, 480], "width must be positive"),
            ([640, -1], "height must be positive"),
            ([640], "must have 2 elements"),
            ([], "must have 2 elements"),
        ],
    )
    def test_rejected(self, size, message):
        with pytest.raises(InvalidCanvasSizeError, match=message):
            validate_canvas_size(size)


class TestLinkIndices:
    """Tests for link index validation."""

    @pytest.mark.parametrize(
        "links",
        [
            [Link(0, 1), Link(1, 2)],
            [(0, 1), [1, 2]],
            [{"source": 0, "target": 2}],
            [Link(Node(index=0), Node(index=2))],
            [],
        ],
        ids=["link", "pair", "dict", "node", "empty"],
    )
    def test_accepted_forms(self, links):
        """Every supported link form validates without issues."""
        assert validate_link_indices(links, node_count=3) == []

    def test_last_index_is_in_bounds(self):
        assert validate_link_indices([(2, 0)], node_count=3) == []
        with pytest.raises(InvalidLinkError, match="source index 3 out of bounds"):
            validate_link_indices([(3, 0)], node_count=3)

    def test_negative_target(self):
        with pytest.raises(InvalidLinkError, match=r"target index -2 out of bounds \[0, 3\)"):
            validate_link_indices([(0, -2)], node_count=3)

    def test_missing_endpoint(self):
        """A dict without a target is reported, not treated as node 0."""
        with pytest.raises(InvalidLinkError, match="target is None"):
            validate_link_indices([{"source": 0}], node_count=3)

    def test_collects_issues_when_not_strict(self):
        """Non-strict mode reports (link index, message) for each bad endpoint."""
        issues = validate_link_indices([(0, 1), (5, 1), (0, 9)], node_count=3, strict=False)
        assert [index for index, _ in issues] == [1, 2]
        assert "source index 5" in issues[0][1]
        assert "target index 9" in issues[1][1]


class TestScalarValidation:
    """Tests for iteration, alpha, positivity and axis validation."""

    def test_iterations(self):
        """Iterations must be at least 1."""
        assert validate_iterations(1) == 1
        with pytest.raises(ValidationError, match="must be >= 1"):
            validate_iterations(0)

    def test_alpha(self):
        """Alpha must lie in [0, 1]."""
        assert validate_alpha(0.0) == 0.0
        assert validate_alpha(1.0) == 1.0
        for bad in (1.1, -0.1):
            with pytest.raises(ValidationError, match="must be in"):
                validate_alpha(bad)

    def test_positive(self):
        """Zero, negative and NaN values are rejected."""
        validate_positive([1.0, 0.5], "mass")
        with pytest.raises(ValidationError, match="mass must be positive"):
            validate_positive([1.0, 0.0], "mass")
        with pytest.raises(ValidationError, match="node 0"):
            validate_positive([-2.0], "mass")
        with pytest.raises(ValidationError):
            validate_positive([float("nan")], "mass")

    def test_axis(self):
        """Axis must be a component index of the dimension."""
        assert validate_axis(2, 3) == 2
        with pytest.raises(InvalidDimensionError):
            validate_axis(3, 3)
        with pytest.raises(InvalidDimensionError):
            validate_axis(-1, 2)


class TestLayoutValidation:
    """Tests for validation wired into the layout."""

    def test_size_checked_on_construction_and_assignment(self):
        with pytest.raises(InvalidCanvasSizeError):
            ForceSimulationLayout(size=(0, 600))
        layout = ForceSimulationLayout(size=(100, 100))
        with pytest.raises(InvalidCanvasSizeError):
            layout.size = (100, -5)
        assert layout.size == (100.0, 100.0)

    def test_run_rejects_bad_links(self):
        """run() validates before building the simulation."""
        layout = ForceSimulationLayout(nodes=[{}, {}], links=[(0, 2)])
        with pytest.raises(InvalidLinkError):
            layout.run()
        assert layout.simulation is None

    def test_validate_chains(self):
        layout = ForceSimulationLayout(nodes=[{}, {}], links=[(0, 1)])
        assert layout.validate() is layout
