"""Rules driven by where a cell sits relative to the grid exterior.

Three kinds of rule:

1. The global BoundaryPolicy (prunes).
2. Per-prototype hard directives, must_touch_boundary / forbid_boundary
   (prune). Must-touch applies to every cell: a cell with no exterior face
   cannot satisfy it.
3. Per-prototype soft directives, prefer_boundary / avoid_boundary (never
   prune, only scale the weight used for entropy and candidate ordering).

A cell's boundary mask is the set of its faces that exit the grid. There are
only 64 possible masks, so every per-variant rule is tabulated per mask once
and looked up per cell.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

import numpy as np

from wfc3d import config
from wfc3d.faces import FaceMask, touches
from wfc3d.model.prototype import NodeVariant
from wfc3d.solver.events import RemovalReason
from wfc3d.solver.settings import BoundaryPolicy
from wfc3d.types import CellIndex, VariantIndex

NUM_MASKS = 1 << 6


def compute_boundary_masks(sx: int, sy: int, sz: int) -> np.ndarray:
    """Return the boundary FaceMask of every cell as a uint8 array of length sx*sy*sz."""
    z, y, x = np.meshgrid(np.arange(sz), np.arange(sy), np.arange(sx), indexing="ij")
    masks = np.zeros((sz, sy, sx), dtype=np.uint8)
    masks[x == sx - 1] |= int(FaceMask.PX)
    masks[x == 0] |= int(FaceMask.NX)
    masks[y == sy - 1] |= int(FaceMask.PY)
    masks[y == 0] |= int(FaceMask.NY)
    masks[z == sz - 1] |= int(FaceMask.PZ)
    masks[z == 0] |= int(FaceMask.NZ)
    return masks.reshape(-1)


def policy_prunes(
    policy: BoundaryPolicy, variant: NodeVariant, boundary: FaceMask
) -> bool:
    """True if the global policy removes this variant from a cell with this boundary."""
    if boundary == FaceMask.NONE:
        return False

    match policy:
        case BoundaryPolicy.UNRESTRICTED:
            return False
        case BoundaryPolicy.FORBID_EMPTY_ON_BOUNDARY:
            return variant.is_empty
        case BoundaryPolicy.SOLID_ONLY:
            solid = variant.rotated(variant.prototype.solid_faces)
            return (boundary & ~solid) != FaceMask.NONE
        case _:
            raise ValueError(f"Unknown boundary policy: {policy}")


def directive_prunes(variant: NodeVariant, boundary: FaceMask) -> bool:
    """True if the variant's own must/forbid directives remove it from this cell."""
    proto = variant.prototype
    must = variant.rotated(proto.must_touch_boundary)
    if must != FaceMask.NONE and not touches(must, boundary):
        return True

    forbid = variant.rotated(proto.forbid_boundary)
    return forbid != FaceMask.NONE and touches(forbid, boundary)


def weight_multiplier(variant: NodeVariant, boundary: FaceMask) -> float:
    """Soft-directive weight factor for a variant on a cell with this boundary."""
    if boundary == FaceMask.NONE:
        return 1.0

    proto = variant.prototype
    multiplier = 1.0

    prefer = variant.rotated(proto.prefer_boundary)
    if prefer != FaceMask.NONE and touches(prefer, boundary):
        multiplier *= max(config.BOUNDARY_MULTIPLIER_MIN, proto.prefer_multiplier)

    avoid = variant.rotated(proto.avoid_boundary)
    if avoid != FaceMask.NONE and touches(avoid, boundary):
        multiplier *= max(config.BOUNDARY_MULTIPLIER_MIN, proto.avoid_multiplier)

    return multiplier


def build_weight_table(variants: Sequence[NodeVariant]) -> np.ndarray:
    """Boundary-adjusted weights per mask: table[mask, v] = weight(v) * multiplier."""
    table = np.empty((NUM_MASKS, len(variants)), dtype=np.float64)
    for mask in range(NUM_MASKS):
        boundary = FaceMask(mask)
        for v, variant in enumerate(variants):
            table[mask, v] = variant.weight * weight_multiplier(variant, boundary)
    return table


def iter_boundary_removals(
    variants: Sequence[NodeVariant],
    policy: BoundaryPolicy,
    boundary_masks: np.ndarray,
) -> Iterator[tuple[CellIndex, VariantIndex, RemovalReason]]:
    """Yield every (cell, variant, reason) the boundary rules prune.

    The global policy is applied to all boundary cells first, then the
    per-prototype directives to every cell. A variant is reported at most once
    per cell.
    """
    policy_table = _tabulate(variants, lambda v, b: policy_prunes(policy, v, b))
    directive_table = _tabulate(variants, directive_prunes)

    for cell in np.flatnonzero(boundary_masks):
        for v in policy_table[boundary_masks[cell]]:
            yield CellIndex(int(cell)), v, RemovalReason.BOUNDARY_POLICY

    for cell, mask in enumerate(boundary_masks):
        already = set(policy_table[mask])
        for v in directive_table[mask]:
            if v not in already:
                yield CellIndex(int(cell)), v, RemovalReason.BOUNDARY_DIRECTIVE


def _tabulate(variants, prunes) -> list[list[VariantIndex]]:
    return [
        [
            VariantIndex(v)
            for v, variant in enumerate(variants)
            if prunes(variant, FaceMask(mask))
        ]
        for mask in range(NUM_MASKS)
    ]
