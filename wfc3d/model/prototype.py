"""Authored tile prototypes and the variants expanded from them."""

from __future__ import annotations

from dataclasses import dataclass, field

from wfc3d import config
from wfc3d.faces import Face, FaceMask, rotate_mask_y
from wfc3d.types import PrototypeId, Rotation


@dataclass(frozen=True)
class Prototype:
    """An authored tile definition.

    Attributes:
        prototype_id: Unique identifier for this prototype.
        allow_rotation: If True, variants are expanded at 0, 90, 180 and 270
            degrees around Y. Otherwise only rotation 0 exists.
        base_weight: Authored relative weight (higher = more common).
        learned_weight: Weight produced by frequency learning.
        use_learned_weight: Select learned_weight instead of base_weight.
        is_empty: Marks the "air" prototype. Its variants represent empty space
            and are never placed as content.
        must_touch_boundary: Hard rule. A cell keeps this prototype
            only if one of these (rotated) faces lies on the grid exterior.
        forbid_boundary: Hard rule. Pruned from a cell when any of these
            (rotated) faces lies on the grid exterior.
        prefer_boundary: Soft rule. Weight is multiplied by prefer_multiplier
            when any of these faces lies on the exterior.
        avoid_boundary: Soft rule, same as prefer_boundary with
            avoid_multiplier.
        rotation_bias: Per-rotation weight factor, indexed by quarter turn.
        solid_faces: Faces that are closed. Used by the SOLID_ONLY boundary
            policy, which requires every exterior face of a cell to be solid.
    """

    prototype_id: PrototypeId
    allow_rotation: bool = True
    base_weight: float = 1.0
    learned_weight: float = 1.0
    use_learned_weight: bool = False
    is_empty: bool = False
    must_touch_boundary: FaceMask = FaceMask.NONE
    forbid_boundary: FaceMask = FaceMask.NONE
    prefer_boundary: FaceMask = FaceMask.NONE
    avoid_boundary: FaceMask = FaceMask.NONE
    prefer_multiplier: float = config.DEFAULT_PREFER_MULTIPLIER
    avoid_multiplier: float = config.DEFAULT_AVOID_MULTIPLIER
    rotation_bias: tuple[float, ...] = (1.0, 1.0, 1.0, 1.0)
    solid_faces: FaceMask = FaceMask.NONE

    @property
    def effective_weight(self) -> float:
        return self.learned_weight if self.use_learned_weight else self.base_weight

    @property
    def rotations(self) -> range:
        return range(config.ROTATION_COUNT if self.allow_rotation else 1)

    def rotation_factor(self, rotation: Rotation) -> float:
        if 0 <= rotation < len(self.rotation_bias):
            return self.rotation_bias[rotation]
        return 1.0

    def validate(self) -> list[str]:
        """Return a list of problems with this prototype (empty when valid)."""
        problems: list[str] = []
        name = self.prototype_id or "<unnamed>"

        if not self.prototype_id:
            problems.append("prototype has an empty id")
        if self.base_weight < 0:
            problems.append(f"{name}: base_weight must be >= 0, got {self.base_weight}")
        if self.learned_weight < 0:
            problems.append(
                f"{name}: learned_weight must be >= 0, got {self.learned_weight}"
            )
        for label, value in (
            ("prefer_multiplier", self.prefer_multiplier),
            ("avoid_multiplier", self.avoid_multiplier),
        ):
            if not (
                config.BOUNDARY_MULTIPLIER_MIN <= value <= config.BOUNDARY_MULTIPLIER_MAX
            ):
                problems.append(
                    f"{name}: {label} must be in "
                    f"[{config.BOUNDARY_MULTIPLIER_MIN}, "
                    f"{config.BOUNDARY_MULTIPLIER_MAX}], got {value}"
                )
        if len(self.rotation_bias) != config.ROTATION_COUNT:
            problems.append(
                f"{name}: rotation_bias needs {config.ROTATION_COUNT} entries, "
                f"got {len(self.rotation_bias)}"
            )
        if any(bias < 0 for bias in self.rotation_bias):
            problems.append(f"{name}: rotation_bias entries must be >= 0")
        if self.must_touch_boundary & self.forbid_boundary:
            problems.append(
                f"{name}: faces both required and forbidden on the boundary"
            )
        return problems


@dataclass(frozen=True)
class NodeVariant:
    """A concrete (prototype, rotation) pair enumerated for solving."""

    prototype: Prototype
    rotation: Rotation
    weight: float

    @property
    def variant_id(self) -> str:
        return f"{self.prototype.prototype_id}@R{self.rotation}"

    @property
    def is_empty(self) -> bool:
        return self.prototype.is_empty

    def rotated(self, mask: FaceMask) -> FaceMask:
        """Map a mask from the prototype's local frame into the world frame."""
        return rotate_mask_y(mask, self.rotation)


@dataclass
class PrototypeAdjacency:
    """Allowed neighbor prototypes per local face of one prototype.

    `faces[Face.PX]` lists the prototypes that may sit across the prototype's
    own (un-rotated) +X face. Lists keep insertion order and hold no duplicates.
    """

    prototype_id: PrototypeId
    faces: list[list[PrototypeId]] = field(
        default_factory=lambda: [[] for _ in Face]
    )

    def allowed(self, face: Face) -> list[PrototypeId]:
        return self.faces[face]

    def add(self, face: Face, neighbor_id: PrototypeId) -> bool:
        """Allow a neighbor on a face. Returns True if it was not already allowed."""
        lst = self.faces[face]
        if neighbor_id in lst:
            return False
        lst.append(neighbor_id)
        return True
