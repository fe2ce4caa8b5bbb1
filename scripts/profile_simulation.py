"""
Profiling script for ndforce performance analysis.

Times the many-body and collide forces across point counts, opening angles
and dimensions, plus the full graph layout, to spot regressions in the tree
code.
"""

import cProfile
import io
import pstats
import sys
import time
from pathlib import Path
from pstats import SortKey

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import numpy as np


def create_state(n_points, dimension=2, spread=500.0, seed=42):
    """Create a simulation state with uniformly random positions."""
    from ndforce import SimulationState

    rng = np.random.default_rng(seed)
    return SimulationState(
        rng.uniform(0, spread, size=(n_points, dimension)),
        random_seed=seed,
    )


def create_graph(n_nodes, n_edges, seed=42):
    """Create a random graph with n nodes and approximately n_edges edges."""
    rng = np.random.default_rng(seed)
    nodes = [{"width": 20, "height": 20} for _ in range(n_nodes)]
    edges = []
    for _ in range(n_edges):
        source, target = (int(v) for v in rng.integers(0, n_nodes, size=2))
        if source != target:
            edges.append({"source": source, "target": target})
    return nodes, edges


# =============================================================================
# Force Profiles
# =============================================================================


def profile_many_body(n_points, theta, dimension=2):
    """Return a callable that applies the many-body force once."""
    from ndforce import ManyBodyForce

    def run():
        state = create_state(n_points, dimension)
        force = ManyBodyForce(theta=theta)
        force.initialize(state)
        force.apply(state)

    return run


def profile_collide(n_points, dimension=2):
    """Return a callable that applies the collide force once on a dense set."""
    from ndforce import CollideForce

    def run():
        state = create_state(n_points, dimension, spread=n_points ** (1 / dimension) * 5)
        force = CollideForce(radius=3.0)
        force.initialize(state)
        force.apply(state)

    return run


def profile_layout(n_nodes, n_edges):
    """Return a callable that runs the full graph layout."""
    from ndforce import ForceSimulationLayout

    def run():
        nodes, edges = create_graph(n_nodes, n_edges)
        layout = ForceSimulationLayout(
            nodes=nodes, links=edges, size=(1000, 1000), collide=True, iterations=50
        )
        layout.run()

    return run


# =============================================================================
# Benchmarking Infrastructure
# =============================================================================


def benchmark_scenario(name, func, profile=True):
    """Benchmark a scenario and print timing."""
    print(f"\n{'-'*60}")
    print(f"  {name}")
    print("-" * 60)

    if profile:
        profiler = cProfile.Profile()
        start_time = time.time()
        profiler.enable()
        func()
        profiler.disable()
        elapsed = time.time() - start_time

        s = io.StringIO()
        ps = pstats.Stats(profiler, stream=s).sort_stats(SortKey.CUMULATIVE)
        ps.print_stats(10)

        print(f"Time: {elapsed:.3f}s")
        print("\nTop 10 functions:")
        for line in s.getvalue().split("\n")[5:16]:
            if line.strip():
                print(line)

        return elapsed, profiler
    else:
        start_time = time.time()
        func()
        elapsed = time.time() - start_time
        print(f"Time: {elapsed:.3f}s")
        return elapsed, None


def main():
    """Run all profiling scenarios."""
    print("=" * 60)
    print("  ndforce Performance Profiling")
    print("=" * 60)

    profile = "--profile" in sys.argv

    scenarios = [
        ("Many-body: 200 points, exact", profile_many_body(200, 0.0)),
        ("Many-body: 200 points, theta 0.9", profile_many_body(200, 0.9)),
        ("Many-body: 1000 points, theta 0.9", profile_many_body(1000, 0.9)),
        ("Many-body: 1000 points 3D, theta 0.9", profile_many_body(1000, 0.9, 3)),
        ("Collide: 1000 points", profile_collide(1000)),
        ("Collide: 1000 points 3D", profile_collide(1000, 3)),
        ("Layout: 100 nodes, 200 edges", profile_layout(100, 200)),
    ]

    results = {}
    for name, func in scenarios:
        elapsed, _ = benchmark_scenario(name, func, profile=profile)
        results[name] = elapsed

    print("\n" + "=" * 60)
    print("  Summary")
    print("=" * 60)
    print(f"\n{'Scenario':<40} {'Time':>10}")
    print("-" * 52)
    for name, elapsed in results.items():
        print(f"{name:<40} {elapsed:>10.3f}s")


if __name__ == "__main__":
    main()
