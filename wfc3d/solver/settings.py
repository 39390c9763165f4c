from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from wfc3d import config


class BoundaryPolicy(Enum):
    """Global rule applied to cells on the grid exterior."""

    # No restriction
    UNRESTRICTED = auto()
    # No empty-space variant on any boundary cell
    FORBID_EMPTY_ON_BOUNDARY = auto()
    # Every exterior face of a boundary cell must be a solid face of its variant
    SOLID_ONLY = auto()


@dataclass(frozen=True)
class SolverSettings:
    """Settings for one solver instance.

    Attributes:
        boundary_policy: Global exterior rule.
        max_steps: Bound on cell-selection iterations.
        max_backtracks: Bound on pop-and-revert operations.
        seed: Seed for the solver's private generator. Negative = OS entropy.
        verbose: Log contradiction reports and budget exhaustion.
    """

    boundary_policy: BoundaryPolicy = BoundaryPolicy.FORBID_EMPTY_ON_BOUNDARY
    max_steps: int = config.DEFAULT_MAX_STEPS
    max_backtracks: int = config.DEFAULT_MAX_BACKTRACKS
    seed: int = config.DEFAULT_SEED
    verbose: bool = config.DEFAULT_VERBOSE
