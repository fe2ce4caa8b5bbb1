"""Tests for the center, direction and link forces."""

import warnings

import numpy as np
import pytest

from ndforce import Link, Node
from ndforce.force import CenterForce, DirectionForce, LinkForce, PositionForce
from ndforce.force.base import resolve_per_node
from ndforce.simulation import SimulationState
from ndforce.validation import InvalidDimensionError, InvalidLinkError, ValidationError


def initialized(force, state):
    force.initialize(state)
    return force


class TestResolvePerNode:
    """Tests for constant-or-callable parameters."""

    def test_constant(self):
        """A constant is broadcast to every node."""
        assert resolve_per_node(2.5, ["a", "b"]).tolist() == [2.5, 2.5]

    def test_callable(self):
        """A callable is evaluated per node id."""
        values = resolve_per_node(lambda node_id: len(node_id), ["a", "bcd"])
        assert values.tolist() == [1.0, 3.0]


class TestCenterForce:
    """Tests for the centering force."""

    def test_full_strength_moves_mean_to_center(self):
        """With strength 1 the mean lands on the center."""
        state = SimulationState([[0, 0], [2, 0], [4, 6]])
        force = initialized(CenterForce(center=(10, 10)), state)
        force.apply(state)
        assert state.positions.mean(axis=0) == pytest.approx([10.0, 10.0])

    def test_relative_layout_preserved(self):
        """Centering is a pure translation."""
        state = SimulationState([[0, 0], [2, 0], [4, 6]])
        before = state.positions - state.positions[0]
        initialized(CenterForce(center=(10, 10), strength=0.3), state).apply(state)
        assert state.positions - state.positions[0] == pytest.approx(before)

    def test_partial_strength(self):
        """Strength is the fraction of the offset removed."""
        state = SimulationState([[0, 0], [2, 0], [4, 6]])
        initialized(CenterForce(center=(10, 10), strength=0.5), state).apply(state)
        assert state.positions.mean(axis=0) == pytest.approx([6.0, 6.0])

    def test_default_center_is_origin(self):
        """Without a center the layout is centered on the origin."""
        state = SimulationState([[1, 1, 1], [3, 3, 3]])
        initialized(CenterForce(), state).apply(state)
        assert state.positions.mean(axis=0) == pytest.approx([0.0, 0.0, 0.0])

    def test_velocities_untouched(self):
        """Only positions are shifted."""
        state = SimulationState([[0, 0], [2, 2]])
        initialized(CenterForce(center=(5, 5)), state).apply(state)
        assert not state.velocities.any()

    def test_dimension_mismatch_raises(self):
        """The center must live in the simulation's space."""
        with pytest.raises(InvalidDimensionError):
            CenterForce(center=(1, 2, 3)).initialize(SimulationState([[0, 0]]))

    def test_strength_clamped(self):
        """Strength is clamped to [0, 1]."""
        assert CenterForce(strength=3.0).strength == 1.0
        assert CenterForce(strength=-1.0).strength == 0.0


class TestDirectionForce:
    """Tests for the per-axis positioning force."""

    def test_pull_towards_target(self):
        """velocity[axis] += (target - position) * strength * alpha."""
        state = SimulationState([[0, 2], [5, 12]], alpha=0.5)
        initialized(DirectionForce(axis=1, target=10.0, strength=0.5), state).apply(state)
        assert state.velocities[:, 1].tolist() == pytest.approx([2.0, -0.5])
        assert not state.velocities[:, 0].any()

    def test_per_node_parameters(self):
        """Targets and strengths may differ per node."""
        targets = {"a": 0.0, "b": 100.0}
        state = SimulationState([[10, 0], [10, 0]], node_ids=["a", "b"])
        force = DirectionForce(axis=0, target=lambda node_id: targets[node_id], strength=0.1)
        initialized(force, state).apply(state)
        assert state.velocities[:, 0].tolist() == pytest.approx([-1.0, 9.0])

    def test_position_shorthands(self):
        """PositionForce.x/y/z pick the axis."""
        assert PositionForce.x().axis == 0
        assert PositionForce.y().axis == 1
        assert PositionForce.z().axis == 2

    def test_axis_outside_dimension_raises(self):
        """The z axis does not exist in 2D."""
        with pytest.raises(InvalidDimensionError):
            PositionForce.z().initialize(SimulationState([[0, 0]]))


class TestLinkForce:
    """Tests for the link spring force."""

    def test_stretched_link_pulls_together(self):
        """Equal-degree endpoints share the correction equally."""
        state = SimulationState([[0, 0], [100, 0]], random_seed=0)
        initialized(LinkForce([(0, 1)], distance=30.0), state).apply(state)
        # (100 - 30) / 100 * alpha * strength = 0.7 of the offset, half each
        assert state.velocities[0, 0] == pytest.approx(35.0)
        assert state.velocities[1, 0] == pytest.approx(-35.0)

    def test_compressed_link_pushes_apart(self):
        """Links shorter than their rest length expand."""
        state = SimulationState([[0, 0], [10, 0]], random_seed=0)
        initialized(LinkForce([(0, 1)], distance=30.0), state).apply(state)
        assert state.velocities[0, 0] < 0
        assert state.velocities[1, 0] > 0

    def test_degree_bias(self):
        """The lower-degree endpoint takes more of the correction."""
        state = SimulationState([[0, 0], [100, 0], [0, 100]], random_seed=0)
        force = initialized(LinkForce([(0, 1), (0, 2)], distance=30.0), state)
        assert force.strengths.tolist() == [1.0, 1.0]
        force.apply(state)
        # degree(0) = 2, degree(1) = 1: node 1 takes 2/3 of 70
        assert state.velocities[1, 0] == pytest.approx(-70.0 * 2 / 3)

    def test_default_strength_from_degree(self):
        """Default strength is 1 / min(degree)."""
        state = SimulationState([[0, 0], [1, 0], [2, 0], [3, 0]])
        force = initialized(LinkForce([(0, 1), (0, 2), (0, 3), (1, 2)]), state)
        assert force.strengths.tolist() == pytest.approx([0.5, 0.5, 1.0, 0.5])

    def test_explicit_strength_and_distance(self):
        """Per-link sequences override the defaults."""
        state = SimulationState([[0, 0], [100, 0]], random_seed=0)
        force = initialized(LinkForce([(0, 1)], distance=[50.0], strength=[0.5]), state)
        force.apply(state)
        # (100 - 50) / 100 * 0.5 = 0.25 of the offset, half each
        assert state.velocities[1, 0] == pytest.approx(-12.5)

    def test_alpha_scales_correction(self):
        """Corrections shrink as the simulation cools."""
        state = SimulationState([[0, 0], [100, 0]], alpha=0.5, random_seed=0)
        initialized(LinkForce([(0, 1)], distance=30.0), state).apply(state)
        assert state.velocities[1, 0] == pytest.approx(-17.5)

    def test_coincident_endpoints_are_finite(self):
        """Zero separation is jiggled instead of dividing by zero."""
        state = SimulationState([[1, 1], [1, 1]], random_seed=0)
        initialized(LinkForce([(0, 1)], distance=30.0), state).apply(state)
        assert np.isfinite(state.velocities).all()
        assert state.velocities.any()

    def test_link_and_node_objects(self):
        """Link objects with Node endpoints are accepted."""
        n0, n1 = Node(index=0), Node(index=1)
        force = LinkForce([Link(n0, n1), {"source": 1, "target": 0}])
        assert force.links == [(0, 1), (1, 0)]

    def test_self_loop_warns_and_is_ignored(self):
        """Self-loops are skipped with a warning."""
        state = SimulationState([[0, 0], [100, 0]], random_seed=0)
        force = LinkForce([(0, 0), (0, 1)], distance=30.0)
        with pytest.warns(UserWarning, match="self-loop"):
            force.initialize(state)
        force.apply(state)
        assert state.velocities[1, 0] == pytest.approx(-35.0)

    def test_no_warning_without_self_loops(self):
        """Ordinary links initialize silently."""
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            LinkForce([(0, 1)]).initialize(SimulationState([[0, 0], [1, 1]]))

    def test_invalid_index_raises(self):
        """Links must reference existing nodes."""
        with pytest.raises(InvalidLinkError):
            LinkForce([(0, 5)]).initialize(SimulationState([[0, 0], [1, 1]]))

    def test_per_link_length_mismatch_raises(self):
        """Per-link sequences need one value per link."""
        with pytest.raises(ValidationError, match="distance"):
            LinkForce([(0, 1)], distance=[1.0, 2.0]).initialize(
                SimulationState([[0, 0], [1, 1]])
            )

    def test_endpoint_without_index_raises(self):
        """Node endpoints need an index."""
        with pytest.raises(ValidationError):
            LinkForce([Link(Node(), Node())])
