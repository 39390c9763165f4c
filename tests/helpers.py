from __future__ import annotations

from collections.abc import Iterable, Mapping

from wfc3d.faces import FACES, OPPOSITE_FACE, Face
from wfc3d.model import NodeSet, Prototype, PrototypeAdjacency
from wfc3d.solver import SolveResult
from wfc3d.solver.grid import OUTSIDE, GridShape


def make_adjacency(
    rules: Mapping[str, Mapping[Face, Iterable[str]]],
) -> dict[str, PrototypeAdjacency]:
    """Build adjacency records from {prototype: {face: [neighbors]}}."""
    adjacency: dict[str, PrototypeAdjacency] = {}
    for pid, faces in rules.items():
        adj = PrototypeAdjacency(pid)
        for face, neighbors in faces.items():
            for neighbor in neighbors:
                adj.add(face, neighbor)
        adjacency[pid] = adj
    return adjacency


def all_faces(*neighbors: str) -> dict[Face, list[str]]:
    """The same neighbor list on every face."""
    return {face: list(neighbors) for face in FACES}


def build(
    prototypes: list[Prototype],
    rules: Mapping[str, Mapping[Face, Iterable[str]]] | None = None,
) -> NodeSet:
    node_set = NodeSet(prototypes, make_adjacency(rules or {}))
    node_set.build()
    return node_set


def gradient_node_set() -> NodeSet:
    """Three unrotated prototypes where A and C may never touch.

    - A can be next to A and B (common base prototype)
    - B can be next to A, B and C (transition)
    - C can be next to B and C (rare)
    """
    prototypes = [
        Prototype("A", allow_rotation=False, base_weight=3.0),
        Prototype("B", allow_rotation=False, base_weight=2.0),
        Prototype("C", allow_rotation=False, base_weight=1.0),
    ]
    return build(
        prototypes,
        {
            "A": all_faces("A", "B"),
            "B": all_faces("A", "B", "C"),
            "C": all_faces("B", "C"),
        },
    )


def self_compatible_node_set() -> NodeSet:
    """A single unrotated prototype allowed next to itself on every face."""
    return build(
        [Prototype("block", allow_rotation=False)],
        {"block": all_faces("block")},
    )


def lonely_node_set() -> NodeSet:
    """Prototype A may only touch Empty along X; Empty is a separate prototype."""
    prototypes = [
        Prototype("A", allow_rotation=False),
        Prototype("empty", allow_rotation=False, is_empty=True),
    ]
    return build(
        prototypes,
        {"A": {Face.PX: ["empty"], Face.NX: ["empty"]}},
    )


def twisted_node_set() -> NodeSet:
    """Unsatisfiable on any grid holding a 2x2 square in the XZ plane.

    Crossing X swaps P0/P1, crossing Z swaps P1/P2. Both are one-to-one, so
    arc consistency never prunes a full grid, but the two swaps do not
    commute and every square closes with a conflict.
    """
    ids = ("P0", "P1", "P2")
    swap_x = {"P0": "P1", "P1": "P0", "P2": "P2"}
    swap_z = {"P0": "P0", "P1": "P2", "P2": "P1"}
    rules = {
        pid: {
            Face.PX: [swap_x[pid]],
            Face.NX: [swap_x[pid]],
            Face.PZ: [swap_z[pid]],
            Face.NZ: [swap_z[pid]],
            Face.PY: list(ids),
            Face.NY: list(ids),
        }
        for pid in ids
    }
    return build([Prototype(pid, allow_rotation=False) for pid in ids], rules)


def rotating_node_set() -> NodeSet:
    """Air, floor and a rotatable wall whose solid back faces +X."""
    air = Prototype("air", allow_rotation=False, is_empty=True)
    floor = Prototype("floor", allow_rotation=False, base_weight=2.0)
    wall = Prototype("wall", base_weight=1.0)
    everything = ("air", "floor", "wall")
    return build([air, floor, wall], {pid: all_faces(*everything) for pid in everything})


def assert_globally_consistent(node_set: NodeSet, result: SolveResult) -> None:
    """Every adjacent pair in a successful result is compatible in both directions."""
    assert result.success
    grid = GridShape(*result.dims)
    for cell in range(grid.size):
        a = int(result.variant_index[cell])
        for face in FACES:
            neighbor = int(grid.neighbors[cell, face])
            if neighbor == OUTSIDE:
                continue
            b = int(result.variant_index[neighbor])
            assert node_set.compatible[a, face, b], (
                f"Invalid adjacency at {grid.coords(cell)} -> {face.name}: "
                f"{node_set.variants[a].variant_id} disallows "
                f"{node_set.variants[b].variant_id}"
            )
            assert node_set.compatible[b, OPPOSITE_FACE[face], a]
