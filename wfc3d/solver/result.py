from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

import numpy as np

from wfc3d.types import GridDims, VariantIndex

if TYPE_CHECKING:
    from wfc3d.model.node_set import NodeSet
    from wfc3d.model.prototype import NodeVariant
    from wfc3d.solver.diagnostics import ContradictionReport


class FailureKind(Enum):
    """How an unsuccessful run ended."""

    # Boundary rules plus the first propagation emptied a domain
    INITIAL_CONTRADICTION = auto()
    MAX_STEPS = auto()
    MAX_BACKTRACKS = auto()
    # Every candidate of every choice point was tried
    EXHAUSTED = auto()


@dataclass(frozen=True)
class SolveResult:
    """Final assignment of a solve.

    `variant_index` has one int32 entry per cell in x-fastest order
    (x + sx * (y + sy * z)). Every entry is -1 when the run failed.
    """

    success: bool
    dims: GridDims
    variant_index: np.ndarray
    failure: FailureKind | None = None
    steps: int = 0
    backtracks: int = 0
    contradiction: ContradictionReport | None = None

    def at(self, x: int, y: int, z: int) -> int:
        sx, sy, _ = self.dims
        return int(self.variant_index[x + sx * (y + sy * z)])

    def as_grid(self) -> np.ndarray:
        """The assignment as an (sx, sy, sz) array indexed [x, y, z]."""
        sx, sy, sz = self.dims
        return self.variant_index.reshape((sz, sy, sx)).transpose(2, 1, 0)


def iter_placements(
    result: SolveResult, node_set: NodeSet
) -> Iterator[tuple[int, int, int, NodeVariant]]:
    """Yield (x, y, z, variant) for every cell holding non-empty content.

    This is the hand-off to a content-placement pipeline. Failed results yield
    nothing.
    """
    if not result.success:
        return

    sx, sy, sz = result.dims
    idx = 0
    for z in range(sz):
        for y in range(sy):
            for x in range(sx):
                v = int(result.variant_index[idx])
                idx += 1
                if v < 0:
                    continue
                variant = node_set.variants[VariantIndex(v)]
                if variant.is_empty:
                    continue
                yield x, y, z, variant
