from __future__ import annotations

from typing import NewType, TypeAlias

# =============================================================================
# GRID TYPES
# =============================================================================

GridCoord: TypeAlias = int  # Always integer cell position

GridPos: TypeAlias = tuple[GridCoord, GridCoord, GridCoord]  # Example: (2, 0, 5)

# Grid dimensions in cells: (sx, sy, sz)
GridDims: TypeAlias = tuple[int, int, int]

# Linear cell index: x + sx * (y + sy * z)
CellIndex = NewType("CellIndex", int)

# =============================================================================
# MODEL TYPES
# =============================================================================

# Stable string identifier of an authored prototype, e.g. "wall_straight"
PrototypeId: TypeAlias = str

# Index into the built variant list of a NodeSet
VariantIndex = NewType("VariantIndex", int)

# Quarter turns around the Y axis: 0, 1, 2 or 3
Rotation: TypeAlias = int

# =============================================================================
# SEED TYPES
# =============================================================================

# Master seed for derived solver seeds. None gives non-deterministic behavior.
RandomSeed: TypeAlias = int | str | None
