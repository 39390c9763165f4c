"""Cell faces, face masks and Y-axis rotation.

The grid is indexed (x, y, z) with Y pointing up. Each cell has six faces in the
fixed order PX, NX, PY, NY, PZ, NZ; that order is also the order in which the
solver visits neighbors, so it must not change.

Rotations are quarter turns around Y. One turn maps PX -> PZ -> NX -> NZ -> PX
and leaves PY/NY untouched.
"""

from __future__ import annotations

from enum import IntEnum, IntFlag

from wfc3d.types import GridPos, Rotation


class Face(IntEnum):
    """The six faces of a grid cell."""

    PX = 0
    NX = 1
    PY = 2
    NY = 3
    PZ = 4
    NZ = 5


class FaceMask(IntFlag):
    """A set of faces packed into a 6-bit mask (bit i = Face(i))."""

    NONE = 0
    PX = 1 << Face.PX
    NX = 1 << Face.NX
    PY = 1 << Face.PY
    NY = 1 << Face.NY
    PZ = 1 << Face.PZ
    NZ = 1 << Face.NZ
    ALL = PX | NX | PY | NY | PZ | NZ


FACES: tuple[Face, ...] = tuple(Face)

OPPOSITE_FACE: dict[Face, Face] = {
    Face.PX: Face.NX,
    Face.NX: Face.PX,
    Face.PY: Face.NY,
    Face.NY: Face.PY,
    Face.PZ: Face.NZ,
    Face.NZ: Face.PZ,
}

FACE_OFFSETS: dict[Face, GridPos] = {
    Face.PX: (1, 0, 0),
    Face.NX: (-1, 0, 0),
    Face.PY: (0, 1, 0),
    Face.NY: (0, -1, 0),
    Face.PZ: (0, 0, 1),
    Face.NZ: (0, 0, -1),
}

# One quarter turn around Y
_QUARTER_TURN: dict[Face, Face] = {
    Face.PX: Face.PZ,
    Face.PZ: Face.NX,
    Face.NX: Face.NZ,
    Face.NZ: Face.PX,
    Face.PY: Face.PY,
    Face.NY: Face.NY,
}


def opposite(face: Face) -> Face:
    return OPPOSITE_FACE[face]


def to_mask(face: Face) -> FaceMask:
    return FaceMask(1 << face)


def mask_has(mask: FaceMask, face: Face) -> bool:
    return bool(mask & to_mask(face))


def rotate_face_y(face: Face, rotation: Rotation) -> Face:
    """Rotate a face by `rotation` quarter turns around Y.

    Negative rotations turn the other way, so `rotate_face_y(f, -r)` maps a
    world face back into the local frame of something rotated by `r`.
    """
    for _ in range(rotation % 4):
        face = _QUARTER_TURN[face]
    return face


def rotate_mask_y(mask: FaceMask, rotation: Rotation) -> FaceMask:
    """Rotate every face in a mask by `rotation` quarter turns around Y."""
    rotated = FaceMask.NONE
    for face in FACES:
        if mask_has(mask, face):
            rotated |= to_mask(rotate_face_y(face, rotation))
    return rotated


def touches(mask: FaceMask, boundary: FaceMask) -> bool:
    """True if any face in `mask` is also in `boundary`."""
    return (mask & boundary) != FaceMask.NONE


def mask_from_names(names: list[str] | tuple[str, ...]) -> FaceMask:
    """Build a mask from face names such as ["PX", "NZ"]."""
    mask = FaceMask.NONE
    for name in names:
        mask |= to_mask(Face[name])
    return mask


def mask_to_names(mask: FaceMask) -> list[str]:
    """Face names in a mask, in canonical face order."""
    return [face.name for face in FACES if mask_has(mask, face)]
