"""Backtracking Wave Function Collapse solver.

- WFC3DSolver: boundary rules, arc-consistency propagation and search
- SolverSettings / BoundaryPolicy: per-run configuration
- SolveResult / FailureKind: outcome of a run
- SolverEvent / iter_playback: event timeline for explanation and playback
"""

from .diagnostics import ContradictionReport
from .events import EventType, RemovalReason, SolverEvent, iter_playback
from .result import FailureKind, SolveResult, iter_placements
from .settings import BoundaryPolicy, SolverSettings
from .solver import ChoicePoint, InitStatus, WFC3DSolver

__all__ = [
    "BoundaryPolicy",
    "ChoicePoint",
    "ContradictionReport",
    "EventType",
    "FailureKind",
    "InitStatus",
    "RemovalReason",
    "SolveResult",
    "SolverEvent",
    "SolverSettings",
    "WFC3DSolver",
    "iter_placements",
    "iter_playback",
]
