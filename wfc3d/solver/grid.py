from __future__ import annotations

import numpy as np

from wfc3d.errors import ConfigurationError
from wfc3d.faces import FACE_OFFSETS, FACES, Face
from wfc3d.types import CellIndex, GridDims, GridPos

# Marks an out-of-bounds neighbor in the neighbor table
OUTSIDE = -1


class GridShape:
    """Index arithmetic for an sx * sy * sz cell grid.

    Cells are stored x-fastest: index = x + sx * (y + sy * z).
    """

    def __init__(self, sx: int, sy: int, sz: int) -> None:
        for name, value in (("sx", sx), ("sy", sy), ("sz", sz)):
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigurationError(
                    f"Grid dimension {name} must be a positive integer, got {value!r}"
                )
        self.sx = sx
        self.sy = sy
        self.sz = sz
        self.size = sx * sy * sz

        # neighbors[cell, face] = neighbor cell index, or OUTSIDE
        self.neighbors = self._build_neighbor_table()

    @property
    def dims(self) -> GridDims:
        return (self.sx, self.sy, self.sz)

    def index(self, x: int, y: int, z: int) -> CellIndex:
        return CellIndex(x + self.sx * (y + self.sy * z))

    def coords(self, cell: int) -> GridPos:
        x = cell % self.sx
        t = cell // self.sx
        return (x, t % self.sy, t // self.sy)

    def in_bounds(self, x: int, y: int, z: int) -> bool:
        return 0 <= x < self.sx and 0 <= y < self.sy and 0 <= z < self.sz

    def neighbor_position(self, cell: int, face: Face) -> GridPos:
        """Position across a face, which may lie outside the grid."""
        x, y, z = self.coords(cell)
        dx, dy, dz = FACE_OFFSETS[face]
        return (x + dx, y + dy, z + dz)

    def _build_neighbor_table(self) -> np.ndarray:
        table = np.full((self.size, len(FACES)), OUTSIDE, dtype=np.int64)
        for cell in range(self.size):
            for face in FACES:
                nx, ny, nz = self.neighbor_position(cell, face)
                if self.in_bounds(nx, ny, nz):
                    table[cell, face] = self.index(nx, ny, nz)
        return table
