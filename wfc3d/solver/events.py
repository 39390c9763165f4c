"""Event timeline of domain mutations.

Every removal of a variant from a cell appends a FORBID event, and every
tentative collapse appends a COLLAPSE event after the removals it caused.
Backtracking restores domains but keeps the events: the log is a historical
trace for playback and explanation, not the live state.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import TYPE_CHECKING

from wfc3d.faces import Face
from wfc3d.types import CellIndex, VariantIndex

if TYPE_CHECKING:
    from wfc3d.solver.result import SolveResult


class EventType(Enum):
    FORBID = auto()
    COLLAPSE = auto()


class RemovalReason(IntEnum):
    """Why a variant was removed from a cell."""

    # Explicit prune by the search (collapse or re-removal of tried candidates)
    UNSPECIFIED = 0
    BOUNDARY_POLICY = auto()
    BOUNDARY_DIRECTIVE = auto()
    INCOMPATIBLE_WITH_NEIGHBOR = auto()


@dataclass(frozen=True, slots=True)
class SolverEvent:
    """A single domain mutation.

    Attributes:
        type: FORBID (variant removed) or COLLAPSE (cell decided).
        cell: Linear index of the cell.
        variant: Variant removed, or chosen for COLLAPSE.
        reason: Cause of a FORBID. UNSPECIFIED for COLLAPSE.
        source_cell: Neighbor that caused an INCOMPATIBLE_WITH_NEIGHBOR removal.
        via_face: Face from source_cell towards cell.
    """

    type: EventType
    cell: CellIndex
    variant: VariantIndex
    reason: RemovalReason = RemovalReason.UNSPECIFIED
    source_cell: CellIndex | None = None
    via_face: Face | None = None


def iter_playback(
    events: Sequence[SolverEvent], result: SolveResult
) -> Iterator[SolverEvent]:
    """Yield the collapses that survived into the final result, in log order.

    Only the first COLLAPSE of each cell whose variant matches the final
    assignment is yielded. Collapses undone by backtracking are skipped, which
    makes the output suitable for animating the solve.
    """
    if not result.success:
        return

    seen: set[int] = set()
    for event in events:
        if event.type is not EventType.COLLAPSE or event.cell in seen:
            continue
        if event.variant != result.variant_index[event.cell]:
            continue
        seen.add(event.cell)
        yield event
