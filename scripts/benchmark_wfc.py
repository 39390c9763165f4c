#!/usr/bin/env python3
"""Benchmark the 3D Wave Function Collapse solver."""

from __future__ import annotations

import argparse
import json
import time
from pathlib import Path

from wfc3d.faces import FACES, Face, FaceMask
from wfc3d.model import NodeSet, Prototype, PrototypeAdjacency
from wfc3d.solver import BoundaryPolicy, SolverSettings, WFC3DSolver
from wfc3d.util.rng import RNGProvider

GRID_SIZES: tuple[tuple[int, int, int], ...] = (
    (4, 2, 4),
    (8, 2, 8),
    (8, 4, 8),
    (12, 4, 12),
)


def create_room_node_set() -> NodeSet:
    """A small room kit: air, floor, and a wall that faces outward on +X."""
    air = Prototype("air", allow_rotation=False, is_empty=True)
    floor = Prototype("floor", allow_rotation=False, base_weight=3.0)
    wall = Prototype(
        "wall",
        base_weight=1.0,
        prefer_boundary=FaceMask.PX,
        solid_faces=FaceMask.PX | FaceMask.PY | FaceMask.NY,
    )

    adjacency = {
        p.prototype_id: PrototypeAdjacency(p.prototype_id) for p in (air, floor, wall)
    }
    everything = ("air", "floor", "wall")
    for face in FACES:
        for pid in everything:
            for other in everything:
                adjacency[pid].add(face, other)
    # Floors never stack
    adjacency["floor"].faces[Face.PY] = ["air", "wall"]
    adjacency["floor"].faces[Face.NY] = ["air", "wall"]

    node_set = NodeSet([air, floor, wall], adjacency)
    node_set.build()
    return node_set


class WFCBenchmark:
    """Benchmark runner for the solver."""

    def __init__(self, iterations: int, master_seed: str) -> None:
        self.iterations = iterations
        self.node_set = create_room_node_set()
        self.seeds = RNGProvider(master_seed)
        self.results: dict[str, dict[str, float]] = {}

    def _run_case(self, sx: int, sy: int, sz: int) -> tuple[float, float]:
        """Run one case. Returns (average solve ms, success rate)."""
        elapsed_total = 0.0
        successes = 0

        for i in range(self.iterations):
            settings = SolverSettings(
                boundary_policy=BoundaryPolicy.UNRESTRICTED,
                seed=self.seeds.seed_for(f"bench.{sx}x{sy}x{sz}.{i}"),
            )

            start = time.perf_counter()
            solver = WFC3DSolver(self.node_set, sx, sy, sz, settings)
            result = solver.solve()
            elapsed_total += time.perf_counter() - start
            successes += result.success

        return (elapsed_total / self.iterations) * 1000.0, successes / self.iterations

    def run(self) -> None:
        """Run all configured grid-size benchmarks."""
        print("WFC3D Benchmark")
        print("=" * 42)
        print(f"Iterations per size: {self.iterations}")
        print()
        print(f"{'Size':>12} {'Solve (ms)':>14} {'Success':>10}")
        print("-" * 42)

        for sx, sy, sz in GRID_SIZES:
            solve_ms, success_rate = self._run_case(sx, sy, sz)

            size_key = f"{sx}x{sy}x{sz}"
            self.results[size_key] = {
                "solve_ms": solve_ms,
                "success_rate": success_rate,
            }

            print(f"{size_key:>12} {solve_ms:14.2f} {success_rate:10.0%}")

    def save_results(self, filename: str) -> None:
        """Save benchmark output to a JSON file."""
        with Path(filename).open("w") as f:
            json.dump(self.results, f, indent=2)
        print(f"\nSaved benchmark results to {filename}")

    def compare_with_baseline(self, baseline_file: str) -> None:
        """Compare current run with a saved baseline JSON file."""
        try:
            with Path(baseline_file).open() as f:
                baseline: dict[str, dict[str, float]] = json.load(f)
        except FileNotFoundError:
            print(f"\nBaseline file not found: {baseline_file}")
            return

        print(f"\nComparison vs baseline: {baseline_file}")
        print("=" * 64)

        for size_key, current in self.results.items():
            if size_key not in baseline:
                continue

            old_ms = baseline[size_key].get("solve_ms", 0.0)
            new_ms = current["solve_ms"]
            if old_ms <= 0:
                continue

            delta_pct = ((new_ms - old_ms) / old_ms) * 100.0
            speed_ratio = old_ms / new_ms if new_ms > 0 else 0.0
            trend = "faster" if speed_ratio > 1.0 else "slower"

            print(
                f"{size_key:>12}: {new_ms:8.2f}ms "
                f"vs {old_ms:8.2f}ms | {speed_ratio:5.2f}x {trend} "
                f"({delta_pct:+6.1f}%)"
            )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Benchmark the WFC3D solver")
    parser.add_argument(
        "--iterations",
        type=int,
        default=5,
        help="Number of runs per grid size (default: 5)",
    )
    parser.add_argument(
        "--master-seed",
        type=str,
        default="bench",
        help="Master seed for per-run solver seeds (default: bench)",
    )
    parser.add_argument("--save", type=str, help="Save current results to JSON")
    parser.add_argument(
        "--compare",
        type=str,
        help="Compare current results against baseline JSON",
    )
    args = parser.parse_args(argv)

    benchmark = WFCBenchmark(iterations=args.iterations, master_seed=args.master_seed)
    benchmark.run()

    if args.save:
        benchmark.save_results(args.save)

    if args.compare:
        benchmark.compare_with_baseline(args.compare)


if __name__ == "__main__":
    main()
