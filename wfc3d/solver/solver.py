"""3D Wave Function Collapse solver with backtracking.

The solver assigns one variant of a built NodeSet to every cell of an
sx * sy * sz grid so that every pair of adjacent cells is compatible.

Usage:
    from wfc3d.solver import SolverSettings, WFC3DSolver

    solver = WFC3DSolver(node_set, 8, 4, 8, SolverSettings(seed=7))
    result = solver.solve()
    if result.success:
        variant = node_set.variants[result.at(0, 0, 0)]

Algorithm:
    1. Every cell starts with every variant possible. Domains are rows of an
       (N, V) numpy bool array.
    2. Construction applies the boundary rules and runs a full arc-consistency
       pass. If that empties a domain the solver is born in a contradiction
       and solve() fails without searching.
    3. solve() repeatedly picks the undecided cell of minimum weighted Shannon
       entropy, orders its variants by weighted sampling without replacement,
       and pushes a choice point. Each candidate is tried by collapsing the
       cell and propagating. On contradiction the next candidate is tried; an
       exhausted choice point is popped and its changes reverted
       (chronological backtracking).
    4. Step and backtrack budgets end the run as a failed result, never as an
       exception.

Every removal is appended to a change log holding the cell's previous cached
weight sums, so reverting to a log offset restores domains, counts and sums
exactly. The event log is never truncated.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum, auto
from random import Random
from typing import NamedTuple

import numpy as np

from wfc3d import config
from wfc3d.errors import ConfigurationError
from wfc3d.faces import FACES, Face
from wfc3d.model.node_set import NodeSet
from wfc3d.solver.boundary import (
    build_weight_table,
    compute_boundary_masks,
    iter_boundary_removals,
)
from wfc3d.solver.diagnostics import (
    NOT_REMOVED,
    ContradictionReport,
    explain_contradiction,
)
from wfc3d.solver.events import EventType, RemovalReason, SolverEvent
from wfc3d.solver.grid import OUTSIDE, GridShape
from wfc3d.solver.result import FailureKind, SolveResult
from wfc3d.solver.settings import SolverSettings
from wfc3d.types import CellIndex, VariantIndex

logger = logging.getLogger(__name__)


class InitStatus(Enum):
    """Outcome of construction-time boundary rules and propagation."""

    OK = auto()
    CONTRADICTION = auto()


class _Change(NamedTuple):
    """One removal, with the cell's cached sums from just before it."""

    cell: int
    variant: int
    weight_sum: float
    weight_log_sum: float


@dataclass
class ChoicePoint:
    """A saved search decision: which cell, which candidates, where the log stood."""

    cell: CellIndex
    change_start: int
    order: list[VariantIndex]
    next_index: int = 0

    @property
    def exhausted(self) -> bool:
        return self.next_index >= len(self.order)


class WFC3DSolver:
    """Backtracking WFC solver over one grid. Create one instance per generation."""

    def __init__(
        self,
        node_set: NodeSet,
        sx: int,
        sy: int,
        sz: int,
        settings: SolverSettings | None = None,
    ) -> None:
        """Initialize the solver and apply boundary rules.

        Args:
            node_set: A built compatibility model.
            sx: Grid size along X.
            sy: Grid size along Y (up).
            sz: Grid size along Z.
            settings: Solver settings. Defaults from wfc3d.config when None.

        Raises:
            ConfigurationError: If the model has no variants or the grid or
                settings are invalid.
        """
        if node_set is None:
            raise ConfigurationError("A NodeSet is required")
        if not node_set.is_built or node_set.num_variants == 0:
            raise ConfigurationError("NodeSet has no variants. Did you build() it?")

        self.node_set = node_set
        self.settings = settings or SolverSettings()
        if self.settings.max_steps < 0 or self.settings.max_backtracks < 0:
            raise ConfigurationError(
                f"Budgets must be >= 0, got max_steps={self.settings.max_steps}, "
                f"max_backtracks={self.settings.max_backtracks}"
            )

        self.grid = GridShape(sx, sy, sz)
        self.num_variants = node_set.num_variants
        num_cells = self.grid.size

        # Private generator. Negative seed = OS entropy.
        seed = self.settings.seed
        self.rng = Random(seed) if seed >= 0 else Random()

        self.boundary_masks = compute_boundary_masks(sx, sy, sz)

        # Boundary-adjusted weights, tabulated per boundary mask: [mask, variant]
        self._weight_table = build_weight_table(node_set.variants)
        self._weight_log_table = self._weight_table * np.log(self._weight_table)

        self.domain = np.ones((num_cells, self.num_variants), dtype=bool)
        self.domain_count = np.full(num_cells, self.num_variants, dtype=np.int64)
        self.weight_sum = self._weight_table.sum(axis=1)[self.boundary_masks]
        self.weight_log_sum = self._weight_log_table.sum(axis=1)[self.boundary_masks]

        # Diagnostics: latest live removal per (cell, variant)
        self.removal_reason = np.full(
            (num_cells, self.num_variants), NOT_REMOVED, dtype=np.int8
        )
        self.removal_source = np.full(
            (num_cells, self.num_variants), NOT_REMOVED, dtype=np.int64
        )
        self.removal_face = np.full(
            (num_cells, self.num_variants), NOT_REMOVED, dtype=np.int8
        )

        # Compatibility slices per face, contiguous for fast row selection
        self._compatible_by_face = [
            np.ascontiguousarray(node_set.compatible[:, face, :]) for face in FACES
        ]

        self._queue: deque[int] = deque()
        self._in_queue = np.zeros(num_cells, dtype=bool)
        self._changes: list[_Change] = []
        self._stack: list[ChoicePoint] = []
        self._events: list[SolverEvent] = []

        self.steps = 0
        self.backtracks = 0
        self.first_contradiction: ContradictionReport | None = None
        self._result: SolveResult | None = None

        self.init_status = self._apply_boundary_rules()

    # =========================================================================
    # Public API
    # =========================================================================

    @property
    def events(self) -> tuple[SolverEvent, ...]:
        """Snapshot of the event log."""
        return tuple(self._events)

    @property
    def change_log_size(self) -> int:
        return len(self._changes)

    def domain_of(self, cell: int) -> list[VariantIndex]:
        """Variants still possible at a cell, in index order."""
        return [VariantIndex(int(v)) for v in np.flatnonzero(self.domain[cell])]

    def entropy(self, cell: int) -> float:
        """Weighted Shannon entropy of a cell's domain, in nats."""
        total = float(self.weight_sum[cell])
        if total <= 0.0:
            return 0.0
        return max(0.0, float(np.log(total)) - float(self.weight_log_sum[cell]) / total)

    def constrain_cell(
        self, x: int, y: int, z: int, allowed: Iterable[VariantIndex]
    ) -> bool:
        """Restrict a cell to the given variants and propagate.

        Intended for seeding before solve(), e.g. from a layout generator.
        Returns False (and marks the solver as contradicted) if the constraint
        leaves no valid assignment.
        """
        cell = self.grid.index(x, y, z)
        keep = set(allowed)
        changed = False
        for v in self.domain_of(cell):
            if v not in keep:
                self._remove_variant(cell, v, RemovalReason.UNSPECIFIED)
                changed = True

        if self.domain_count[cell] == 0 or (changed and not self.propagate([cell])):
            self._record_contradiction(f"Constraint on cell ({x},{y},{z}) failed")
            self.init_status = InitStatus.CONTRADICTION
            return False
        return True

    def propagate(self, cells: Iterable[int] | None = None) -> bool:
        """Run arc-consistency until no domain changes.

        Args:
            cells: Extra dirty cells to enqueue before running.

        Returns:
            False the moment a domain becomes empty, leaving the queue empty.
            True when the queue drains. Re-running on a stable configuration
            removes nothing.
        """
        if cells is not None:
            for cell in cells:
                self._enqueue(int(cell))

        neighbors = self.grid.neighbors
        while self._queue:
            cell = self._queue.popleft()
            self._in_queue[cell] = False

            for face in FACES:
                neighbor = int(neighbors[cell, face])
                if neighbor == OUTSIDE:
                    continue
                if self._revise(cell, neighbor, face):
                    if self.domain_count[neighbor] == 0:
                        self._clear_queue()
                        return False
                    self._enqueue(neighbor)
        return True

    def revert_to(self, change_start: int) -> None:
        """Undo every removal recorded after `change_start`.

        Domains, counts and cached weight sums return exactly to their values
        at that offset. Events are kept.
        """
        for change in reversed(self._changes[change_start:]):
            cell, v = change.cell, change.variant
            if self.domain[cell, v]:
                continue
            self.domain[cell, v] = True
            self.domain_count[cell] += 1
            self.weight_sum[cell] = change.weight_sum
            self.weight_log_sum[cell] = change.weight_log_sum
            self.removal_reason[cell, v] = NOT_REMOVED
            self.removal_source[cell, v] = NOT_REMOVED
            self.removal_face[cell, v] = NOT_REMOVED
        del self._changes[change_start:]

        self._clear_queue()

    def solve(
        self, on_failure: Callable[[SolveResult], None] | None = None
    ) -> SolveResult:
        """Run the search to completion.

        Args:
            on_failure: Called with the result when the run fails.

        Returns:
            The final result. A second call returns the same result.
        """
        if self._result is not None:
            return self._result

        if self.init_status is InitStatus.CONTRADICTION:
            return self._finish(FailureKind.INITIAL_CONTRADICTION, on_failure)

        while True:
            self.steps += 1
            if self.steps > self.settings.max_steps:
                if self.settings.verbose:
                    logger.warning("WFC: Exceeded max steps.")
                return self._finish(FailureKind.MAX_STEPS, on_failure)

            cell = self._pick_cell_min_entropy()
            if cell is None:
                return self._finish(None, on_failure)

            choice = ChoicePoint(
                cell=cell,
                change_start=len(self._changes),
                order=self._weighted_order(cell),
            )
            self._stack.append(choice)
            logger.debug(
                f"Step {self.steps}: cell {self.grid.coords(cell)} "
                f"with {len(choice.order)} candidates"
            )

            failure = self._advance(choice)
            if failure is not None:
                return self._finish(failure, on_failure)

    # =========================================================================
    # Search
    # =========================================================================

    def _advance(self, choice: ChoicePoint) -> FailureKind | None:
        """Try candidates, backtracking as needed, until one propagates cleanly."""
        while True:
            if choice.exhausted:
                failure = self._backtrack()
                if failure is not None:
                    return failure
                choice = self._stack[-1]
                continue

            if self._try_next(choice):
                return None

    def _try_next(self, choice: ChoicePoint) -> bool:
        chosen = choice.order[choice.next_index]
        choice.next_index += 1

        self.revert_to(choice.change_start)
        for tried in choice.order[: choice.next_index - 1]:
            self._remove_variant(choice.cell, tried, RemovalReason.UNSPECIFIED)

        if not self._collapse_to(choice.cell, chosen):
            return False
        if self.propagate():
            return True

        self._record_contradiction("Propagation failed during solve")
        return False

    def _backtrack(self) -> FailureKind | None:
        """Pop and revert exhausted choice points.

        Returns a failure kind if the budget is spent or nothing is left to try.
        """
        self.backtracks += 1
        if self.backtracks > self.settings.max_backtracks:
            if self.settings.verbose:
                logger.warning("WFC: Max backtracks reached.")
            return FailureKind.MAX_BACKTRACKS

        while self._stack:
            choice = self._stack[-1]
            if not choice.exhausted:
                return None
            self.revert_to(choice.change_start)
            self._stack.pop()

        return FailureKind.EXHAUSTED

    def _pick_cell_min_entropy(self) -> CellIndex | None:
        """Undecided cell of minimum entropy, or None when every cell is decided."""
        candidates = np.flatnonzero(self.domain_count > 1)
        if len(candidates) == 0:
            return None

        totals = self.weight_sum[candidates]
        with np.errstate(divide="ignore", invalid="ignore"):
            entropy = np.where(
                totals > 0.0,
                np.log(totals) - self.weight_log_sum[candidates] / totals,
                0.0,
            )
        entropy = np.maximum(entropy, 0.0)

        # Drawn per candidate cell in index order, so runs are reproducible
        noise = np.array([self.rng.random() for _ in range(len(candidates))])
        entropy += noise * config.ENTROPY_TIE_BREAKER

        return CellIndex(int(candidates[int(np.argmin(entropy))]))

    def _weighted_order(self, cell: int) -> list[VariantIndex]:
        """Full permutation of the cell's domain by weighted sampling without replacement."""
        pool = [int(v) for v in np.flatnonzero(self.domain[cell])]
        row = self._weight_table[self.boundary_masks[cell]]
        weights = [float(row[v]) for v in pool]

        order: list[VariantIndex] = []
        while pool:
            total = sum(weights)
            r = self.rng.random() * total
            acc = 0.0
            pick = len(pool) - 1
            for i, w in enumerate(weights):
                acc += w
                if r <= acc:
                    pick = i
                    break
            order.append(VariantIndex(pool.pop(pick)))
            weights.pop(pick)
        return order

    # =========================================================================
    # Domain mutation
    # =========================================================================

    def _apply_boundary_rules(self) -> InitStatus:
        for cell, v, reason in iter_boundary_removals(
            self.node_set.variants, self.settings.boundary_policy, self.boundary_masks
        ):
            self._remove_variant(cell, v, reason)

        # Full pass: the unconstrained grid is not arc-consistent in general
        if (self.domain_count == 0).any() or not self.propagate(range(self.grid.size)):
            self._record_contradiction("Initial boundary propagation failed")
            return InitStatus.CONTRADICTION
        return InitStatus.OK

    def _revise(self, source: int, target: int, face: Face) -> bool:
        """Remove target variants with no support in source across `face`."""
        supported = self._compatible_by_face[face][self.domain[source]].any(axis=0)
        doomed = np.flatnonzero(self.domain[target] & ~supported)
        for v in doomed:
            self._remove_variant(
                target,
                int(v),
                RemovalReason.INCOMPATIBLE_WITH_NEIGHBOR,
                source_cell=source,
                via_face=face,
            )
        return len(doomed) > 0

    def _collapse_to(self, cell: CellIndex, chosen: VariantIndex) -> bool:
        if not self.domain[cell, chosen]:
            return False

        for v in np.flatnonzero(self.domain[cell]):
            if v != chosen:
                self._remove_variant(cell, int(v), RemovalReason.UNSPECIFIED)

        self._events.append(SolverEvent(EventType.COLLAPSE, cell, chosen))
        self._enqueue(cell)
        return True

    def _remove_variant(
        self,
        cell: int,
        v: int,
        reason: RemovalReason,
        source_cell: int | None = None,
        via_face: Face | None = None,
    ) -> None:
        if not self.domain[cell, v]:
            return

        self._changes.append(
            _Change(
                cell, v, float(self.weight_sum[cell]), float(self.weight_log_sum[cell])
            )
        )

        mask = self.boundary_masks[cell]
        self.domain[cell, v] = False
        self.domain_count[cell] -= 1
        self.weight_sum[cell] = max(
            0.0, self.weight_sum[cell] - self._weight_table[mask, v]
        )
        self.weight_log_sum[cell] -= self._weight_log_table[mask, v]

        self._events.append(
            SolverEvent(
                EventType.FORBID,
                CellIndex(cell),
                VariantIndex(v),
                reason,
                None if source_cell is None else CellIndex(source_cell),
                via_face,
            )
        )

        self.removal_reason[cell, v] = reason
        self.removal_source[cell, v] = NOT_REMOVED if source_cell is None else source_cell
        self.removal_face[cell, v] = NOT_REMOVED if via_face is None else via_face

    def _enqueue(self, cell: int) -> None:
        if self._in_queue[cell]:
            return
        self._in_queue[cell] = True
        self._queue.append(cell)

    def _clear_queue(self) -> None:
        self._queue.clear()
        self._in_queue[:] = False

    # =========================================================================
    # Results and diagnostics
    # =========================================================================

    def _record_contradiction(self, header: str) -> None:
        if self.first_contradiction is not None and not self.settings.verbose:
            return
        report = explain_contradiction(self, header)
        if report is None:
            return
        if self.first_contradiction is None:
            self.first_contradiction = report
        if self.settings.verbose:
            logger.error(report.format())

    def _finish(
        self,
        failure: FailureKind | None,
        on_failure: Callable[[SolveResult], None] | None,
    ) -> SolveResult:
        success = failure is None
        if success:
            # Every domain is a singleton here
            variant_index = np.argmax(self.domain, axis=1).astype(np.int32)
        else:
            variant_index = np.full(self.grid.size, -1, dtype=np.int32)

        result = SolveResult(
            success=success,
            dims=self.grid.dims,
            variant_index=variant_index,
            failure=failure,
            steps=self.steps,
            backtracks=self.backtracks,
            contradiction=None if success else self.first_contradiction,
        )
        self._result = result

        if success:
            logger.info(
                f"WFC solved {self.grid.dims} in {self.steps} steps, "
                f"{self.backtracks} backtracks, {len(self._events)} events"
            )
        else:
            logger.info(
                f"WFC failed on {self.grid.dims}: {failure.name} after "
                f"{self.steps} steps, {self.backtracks} backtracks"
            )
            if on_failure is not None:
                on_failure(result)

        return result
