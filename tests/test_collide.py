"""Tests for the collision force."""

import warnings

import numpy as np
import pytest

from ndforce.force.collide import CollideForce, MaxRadiusDelegate
from ndforce.metrics import overlap_count, total_overlap
from ndforce.simulation import Simulation, SimulationState
from ndforce.spatial.tree import NDTree
from ndforce.validation import ForceNotInitializedError, ValidationError


class TestPairResolution:
    """Tests for resolving a single overlapping pair."""

    def test_full_strength_separates_pair(self):
        """With strength 1 the displaced separation becomes r_i + r_j."""
        state = SimulationState([[0, 0], [3, 0]], random_seed=0)
        force = CollideForce(radius=5.0, strength=1.0)
        force.initialize(state)
        force.apply(state)

        displaced = state.positions + state.velocities
        separation = np.linalg.norm(displaced[1] - displaced[0])
        assert separation == pytest.approx(10.0, rel=1e-6)

    def test_equal_radii_split_evenly(self):
        """Equal nodes move by the same amount in opposite directions."""
        state = SimulationState([[0, 0], [3, 0]], random_seed=0)
        force = CollideForce(radius=5.0)
        force.initialize(state)
        force.apply(state)
        assert state.velocities[0, 0] == pytest.approx(-3.5, rel=1e-6)
        assert state.velocities[1, 0] == pytest.approx(3.5, rel=1e-6)

    def test_larger_node_moves_less(self):
        """Node i takes r_j^2 / (r_i^2 + r_j^2) of the correction."""
        radii = [6.0, 2.0]
        state = SimulationState([[0, 0], [4, 0]], random_seed=0)
        force = CollideForce(radius=lambda i: radii[i])
        force.initialize(state)
        force.apply(state)

        # overlap 4, k = 4 / 40 for node 0
        assert state.velocities[0, 0] == pytest.approx(-4 * 0.1, rel=1e-6)
        assert state.velocities[1, 0] == pytest.approx(4 * 0.9, rel=1e-6)

    def test_strength_scales_correction(self):
        """Half strength corrects half the overlap."""
        state = SimulationState([[0, 0], [3, 0]], random_seed=0)
        force = CollideForce(radius=5.0, strength=0.5)
        force.initialize(state)
        force.apply(state)
        assert state.velocities[1, 0] == pytest.approx(1.75, rel=1e-6)

    def test_non_overlapping_untouched(self):
        """Nodes farther apart than their radii are left alone."""
        state = SimulationState([[0, 0], [20, 0]], random_seed=0)
        force = CollideForce(radius=5.0)
        force.initialize(state)
        force.apply(state)
        assert not state.velocities.any()

    def test_coincident_nodes_are_separated(self):
        """Exactly overlapping nodes are pushed apart by jitter."""
        state = SimulationState([[1, 1], [1, 1]], random_seed=3)
        force = CollideForce(radius=2.0)
        force.initialize(state)
        force.apply(state)

        displaced = state.positions + state.velocities
        assert np.linalg.norm(displaced[1] - displaced[0]) == pytest.approx(4.0, rel=1e-5)

    def test_uses_displaced_positions(self):
        """Overlap is measured at position + velocity."""
        state = SimulationState(
            [[0, 0], [20, 0]], velocities=[[0, 0], [-17, 0]], random_seed=0
        )
        force = CollideForce(radius=5.0)
        force.initialize(state)
        force.apply(state)
        assert state.velocities[1, 0] > -17

    def test_alpha_is_ignored(self):
        """The correction does not scale with alpha."""
        state = SimulationState([[0, 0], [3, 0]], alpha=0.01, random_seed=0)
        force = CollideForce(radius=5.0)
        force.initialize(state)
        force.apply(state)
        assert state.velocities[1, 0] == pytest.approx(3.5, rel=1e-6)


class TestOverlapRemoval:
    """Tests for overlap reduction on larger point sets."""

    def test_simulation_removes_overlaps(self):
        """Repeated ticks spread a dense cluster until nothing overlaps."""
        rng = np.random.default_rng(4)
        positions = rng.uniform(0, 20, size=(30, 2))
        state = SimulationState(positions, random_seed=4)
        before = total_overlap(state.positions, 3.0)

        sim = Simulation(state, velocity_decay=0.6)
        sim.add_force("collide", CollideForce(radius=3.0, iterations=2))
        sim.tick(150)

        assert total_overlap(state.positions, 3.0) < before * 0.05
        assert overlap_count(state.positions, 3.0, tolerance=0.5) == 0

    def test_works_in_3d(self):
        """Collision resolution is dimension independent."""
        state = SimulationState([[0, 0, 0], [1, 1, 1]], random_seed=0)
        force = CollideForce(radius=2.0)
        force.initialize(state)
        force.apply(state)
        displaced = state.positions + state.velocities
        assert np.linalg.norm(displaced[1] - displaced[0]) == pytest.approx(4.0, rel=1e-6)

    def test_each_pair_resolved_once(self):
        """Only pairs with j > i are corrected, so one pass does not overshoot."""
        state = SimulationState([[0, 0], [3, 0]], random_seed=0)
        force = CollideForce(radius=5.0, iterations=1)
        force.initialize(state)
        force.apply(state)
        displaced = state.positions + state.velocities
        assert displaced[1, 0] - displaced[0, 0] == pytest.approx(10.0, rel=1e-6)

    def test_iterations_repeat_resolution(self):
        """A second pass sees the first pass's corrections."""
        state = SimulationState([[0, 0], [3, 0]], random_seed=0)
        force = CollideForce(radius=5.0, strength=0.5, iterations=2)
        force.initialize(state)
        force.apply(state)
        # first pass: separation 3 -> 6.5; second pass: 6.5 -> 8.25
        displaced = state.positions + state.velocities
        assert displaced[1, 0] - displaced[0, 0] == pytest.approx(8.25, rel=1e-6)


class TestPruning:
    """Tests for skipping distant subtrees."""

    def test_distant_subtree_not_visited(self):
        """Leaves far outside max radius + own radius are never reached."""
        positions = [[0, 0], [1, 0], [1000, 1000], [1001, 1000]]
        state = SimulationState(positions, random_seed=0)
        force = CollideForce(radius=1.0)
        force.initialize(state)
        tree = force.build_tree(state)

        reached = []
        displaced = state.positions[0]

        def probe(t):
            if t.is_leaf:
                reached.extend(t.node_indices)
                return False
            reach = t.delegate.max_node_radius + 1.0
            return not (
                np.any(t.box.p0 > displaced + reach) or np.any(t.box.p1 < displaced - reach)
            )

        tree.visit(probe)
        assert 2 not in reached
        assert 3 not in reached
        assert 1 in reached


class TestMaxRadiusDelegate:
    """Tests for the max-radius aggregate."""

    def test_tracks_maximum(self):
        """The aggregate is the largest radius added."""
        radii = {0: 1.0, 1: 4.0, 2: 2.0}
        d = MaxRadiusDelegate(lambda i: radii[i])
        for i in radii:
            d.did_add_node(i, np.zeros(2))
        assert d.max_node_radius == 4.0

    def test_removing_maximum_resets_to_zero(self):
        """Removing the largest node resets the aggregate rather than rescanning."""
        radii = {0: 1.0, 1: 4.0}
        d = MaxRadiusDelegate(lambda i: radii[i])
        d.did_add_node(0, np.zeros(2))
        d.did_add_node(1, np.zeros(2))
        d.did_remove_node(1, np.zeros(2))
        assert d.max_node_radius == 0.0

    def test_removing_smaller_keeps_maximum(self):
        """Removing a smaller node leaves the maximum."""
        radii = {0: 1.0, 1: 4.0}
        d = MaxRadiusDelegate(lambda i: radii[i])
        d.did_add_node(0, np.zeros(2))
        d.did_add_node(1, np.zeros(2))
        d.did_remove_node(0, np.zeros(2))
        assert d.max_node_radius == 4.0

    def test_tree_aggregate(self):
        """The root of a tree sees the largest radius of all points."""
        radii = [1.0, 7.0, 3.0]
        tree = NDTree.build(
            [[0, 0], [50, 50], [10, 40]], MaxRadiusDelegate(lambda i: radii[i])
        )
        assert tree.delegate.max_node_radius == 7.0
        for child in tree.children:
            assert child.delegate.max_node_radius <= 7.0


class TestCollideConfiguration:
    """Tests for configuration and the initialize/apply contract."""

    def test_apply_before_initialize_raises(self):
        """The force needs precomputed radii."""
        with pytest.raises(ForceNotInitializedError):
            CollideForce().apply(SimulationState([[0, 0]]))

    def test_negative_radius_raises(self):
        """Radii must be non-negative."""
        with pytest.raises(ValidationError, match="radius"):
            CollideForce(radius=-1.0).initialize(SimulationState([[0, 0]]))

    def test_all_zero_radius_warns(self):
        """A force that can never act is reported."""
        with pytest.warns(UserWarning, match="radius is 0"):
            CollideForce(radius=0.0).initialize(SimulationState([[0, 0], [1, 1]]))

    def test_some_zero_radius_does_not_warn(self):
        """Mixed radii are fine."""
        radii = [0.0, 1.0]
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            CollideForce(radius=lambda i: radii[i]).initialize(
                SimulationState([[0, 0], [1, 1]])
            )

    def test_invalid_iterations_raise(self):
        """At least one pass is required."""
        with pytest.raises(ValidationError):
            CollideForce(iterations=0)

    def test_strength_clamped(self):
        """Negative strength clamps to 0."""
        force = CollideForce(strength=-2.0)
        assert force.strength == 0.0
