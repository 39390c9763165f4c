"""Contradiction reports.

When a domain becomes empty the solver can explain why: every variant of the
first empty cell was removed for a recorded reason (boundary rule, explicit
prune, or a specific neighbor across a specific face). The report also lists
which of the cell's six neighbors exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from wfc3d.faces import FACES, Face, FaceMask, mask_to_names
from wfc3d.solver.events import RemovalReason
from wfc3d.types import CellIndex, GridPos, VariantIndex

if TYPE_CHECKING:
    from wfc3d.solver.solver import WFC3DSolver

# Sentinel in the solver's removal tables for "still present"
NOT_REMOVED = -1


@dataclass(frozen=True)
class RemovalRecord:
    variant: VariantIndex
    variant_id: str
    reason: RemovalReason
    source: GridPos | None = None
    via_face: Face | None = None

    def describe(self) -> str:
        if (
            self.reason is RemovalReason.INCOMPATIBLE_WITH_NEIGHBOR
            and self.source is not None
            and self.via_face is not None
        ):
            return (
                f"removed [{self.variant}:{self.variant_id}] by NEIGHBOR "
                f"{self.source} via face {self.via_face.name}"
            )
        return f"removed [{self.variant}:{self.variant_id}] by {self.reason.name}"


@dataclass(frozen=True)
class NeighborStatus:
    face: Face
    # None when the neighbor lies outside the grid
    position: GridPos | None

    def describe(self) -> str:
        where = "OUTSIDE" if self.position is None else str(self.position)
        return f"neighbor {self.face.name}: {where}"


@dataclass(frozen=True)
class ContradictionReport:
    """Why a cell ended up with an empty domain."""

    header: str
    cell: CellIndex
    position: GridPos
    boundary: FaceMask
    removals: tuple[RemovalRecord, ...]
    neighbors: tuple[NeighborStatus, ...]

    def format(self) -> str:
        boundary = "|".join(mask_to_names(self.boundary)) or "NONE"
        lines = [
            f"WFC CONTRADICTION: {self.header} at cell {self.cell} -> "
            f"{self.position}, boundary={boundary}"
        ]
        lines.extend(f"  - {r.describe()}" for r in self.removals)
        lines.extend(f"    {n.describe()}" for n in self.neighbors)
        return "\n".join(lines)


def explain_contradiction(
    solver: WFC3DSolver, header: str
) -> ContradictionReport | None:
    """Report the first cell with an empty domain, or None if there is none."""
    empty_cells = np.flatnonzero(solver.domain_count == 0)
    if len(empty_cells) == 0:
        return None

    cell = int(empty_cells[0])
    grid = solver.grid
    variants = solver.node_set.variants

    removals: list[RemovalRecord] = []
    for v in range(len(variants)):
        reason = int(solver.removal_reason[cell, v])
        if reason == NOT_REMOVED:
            continue
        source_cell = int(solver.removal_source[cell, v])
        face = int(solver.removal_face[cell, v])
        removals.append(
            RemovalRecord(
                variant=VariantIndex(v),
                variant_id=variants[v].variant_id,
                reason=RemovalReason(reason),
                source=grid.coords(source_cell) if source_cell >= 0 else None,
                via_face=Face(face) if face >= 0 else None,
            )
        )

    neighbors: list[NeighborStatus] = []
    for face in FACES:
        pos = grid.neighbor_position(cell, face)
        neighbors.append(NeighborStatus(face, pos if grid.in_bounds(*pos) else None))

    return ContradictionReport(
        header=header,
        cell=CellIndex(cell),
        position=grid.coords(cell),
        boundary=FaceMask(int(solver.boundary_masks[cell])),
        removals=tuple(removals),
        neighbors=tuple(neighbors),
    )
