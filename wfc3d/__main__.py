"""Command-line entry point: solve a grid from a model artifact.

    python -m wfc3d model.json --size 8 4 8 --seed 7

Exit status is 0 on success, 1 when the search fails, 2 on a configuration
error.
"""

from __future__ import annotations

import argparse
import logging
import sys

from wfc3d import config
from wfc3d.errors import ConfigurationError
from wfc3d.model.serialization import load_node_set
from wfc3d.solver import (
    BoundaryPolicy,
    EventType,
    SolveResult,
    SolverSettings,
    WFC3DSolver,
)
from wfc3d.util.rng import RNGProvider

logger = logging.getLogger("wfc3d")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def format_result(result: SolveResult, variant_ids: list[str]) -> str:
    """Render a successful result as one block of rows per Y layer."""
    sx, sy, sz = result.dims
    width = max(len(v) for v in variant_ids)
    lines: list[str] = []
    for y in range(sy):
        lines.append(f"y={y}")
        for z in range(sz):
            row = [variant_ids[result.at(x, y, z)].ljust(width) for x in range(sx)]
            lines.append("  " + " ".join(row).rstrip())
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wfc3d", description="Solve a 3D WFC grid from a model artifact"
    )
    parser.add_argument("model", help="Path to the JSON model artifact")
    parser.add_argument(
        "--size",
        type=int,
        nargs=3,
        metavar=("X", "Y", "Z"),
        required=True,
        help="Grid size in cells",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=config.DEFAULT_SEED,
        help=f"Solver seed (default: {config.DEFAULT_SEED}, negative = random)",
    )
    parser.add_argument(
        "--master-seed",
        type=str,
        help="Derive the solver seed from this master seed instead of --seed",
    )
    parser.add_argument(
        "--policy",
        choices=[p.name.lower() for p in BoundaryPolicy],
        default=BoundaryPolicy.FORBID_EMPTY_ON_BOUNDARY.name.lower(),
        help="Boundary policy",
    )
    parser.add_argument(
        "--max-steps", type=int, default=config.DEFAULT_MAX_STEPS
    )
    parser.add_argument(
        "--max-backtracks", type=int, default=config.DEFAULT_MAX_BACKTRACKS
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Log contradiction reports"
    )
    parser.add_argument(
        "--events", action="store_true", help="Print event counts after solving"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    seed = args.seed
    if args.master_seed is not None:
        seed = RNGProvider(args.master_seed).seed_for("solve.cli")

    settings = SolverSettings(
        boundary_policy=BoundaryPolicy[args.policy.upper()],
        max_steps=args.max_steps,
        max_backtracks=args.max_backtracks,
        seed=seed,
        verbose=args.verbose,
    )

    try:
        node_set = load_node_set(args.model)
        node_set.build()
        solver = WFC3DSolver(node_set, *args.size, settings)
    except (ConfigurationError, OSError) as exc:
        logger.error(f"Configuration error: {exc}")
        return EXIT_CONFIG

    result = solver.solve()

    if args.events:
        events = solver.events
        collapses = sum(1 for e in events if e.type is EventType.COLLAPSE)
        print(f"events: {len(events)} ({collapses} collapses)")

    if not result.success:
        print(f"FAILED: {result.failure.name} after {result.steps} steps")
        if result.contradiction is not None:
            print(result.contradiction.format())
        return EXIT_FAILED

    print(format_result(result, node_set.variant_ids))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
