"""Compatibility model: prototypes expanded into variants plus a face tensor.

A NodeSet holds the authored/learned data (prototypes and per-face adjacency)
and, once `build()` has been called, the derived solver inputs:

    variants:    ordered tuple of NodeVariant (prototype x rotation)
    compatible:  numpy bool array of shape (V, 6, V)

`compatible[a, face, b]` means "if variant a occupies a cell, variant b may
occupy the neighbor across `face`". Each direction is computed on its own
from the adjacency lists of a's prototype, rotated into a's local frame.

Usage:
    node_set = NodeSet(prototypes, adjacency)
    node_set.build()
    solver = WFC3DSolver(node_set, 8, 4, 8)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

import numpy as np

from wfc3d import config
from wfc3d.errors import ConfigurationError
from wfc3d.faces import FACES, OPPOSITE_FACE, Face, rotate_face_y
from wfc3d.model.prototype import NodeVariant, Prototype, PrototypeAdjacency
from wfc3d.types import PrototypeId, VariantIndex

logger = logging.getLogger(__name__)


class NodeSet:
    """Prototype catalogue plus the variant list and compatibility tensor built from it."""

    def __init__(
        self,
        prototypes: Sequence[Prototype] = (),
        adjacency: Mapping[PrototypeId, PrototypeAdjacency] | None = None,
    ) -> None:
        self.prototypes: list[Prototype] = list(prototypes)
        self.adjacency: dict[PrototypeId, PrototypeAdjacency] = dict(adjacency or {})

        # Derived state, replaced as a whole by build()
        self.variants: tuple[NodeVariant, ...] = ()
        self.compatible: np.ndarray = np.zeros((0, len(FACES), 0), dtype=bool)
        self.is_built = False

    @property
    def num_variants(self) -> int:
        return len(self.variants)

    @property
    def variant_ids(self) -> list[str]:
        return [v.variant_id for v in self.variants]

    def variant_index(self, variant_id: str) -> VariantIndex:
        """Look up a variant by its "<prototype>@R<rotation>" id."""
        for i, variant in enumerate(self.variants):
            if variant.variant_id == variant_id:
                return VariantIndex(i)
        raise KeyError(variant_id)

    def validate(self) -> None:
        """Check the authored data and raise ConfigurationError listing every problem."""
        problems: list[str] = []

        seen: set[PrototypeId] = set()
        for proto in self.prototypes:
            if proto.prototype_id in seen:
                problems.append(f"duplicate prototype id {proto.prototype_id!r}")
            seen.add(proto.prototype_id)
            problems.extend(proto.validate())

        empties = [p.prototype_id for p in self.prototypes if p.is_empty]
        if len(empties) > 1:
            problems.append(f"more than one empty prototype: {empties}")

        for owner_id, adj in self.adjacency.items():
            if owner_id not in seen:
                problems.append(f"adjacency for unknown prototype {owner_id!r}")
            if len(adj.faces) != len(FACES):
                problems.append(
                    f"adjacency for {owner_id!r} has {len(adj.faces)} faces, "
                    f"expected {len(FACES)}"
                )
                continue
            for face in FACES:
                for neighbor_id in adj.allowed(face):
                    if neighbor_id not in seen:
                        problems.append(
                            f"adjacency {owner_id!r} {face.name} references "
                            f"unknown prototype {neighbor_id!r}"
                        )

        if problems:
            raise ConfigurationError(
                "Invalid node set:\n" + "\n".join(f"  - {p}" for p in problems)
            )

    def build(self) -> None:
        """Expand variants and compute the compatibility tensor.

        The new state is computed in full before it replaces the old one, so a
        failed build leaves the previous variants and tensor in place.
        """
        self.validate()

        variants = self._expand_variants()
        compatible = self._compute_compatibility(variants)

        self.variants = variants
        self.compatible = compatible
        self.is_built = True

        logger.info(
            f"Built {len(variants)} variants from {len(self.prototypes)} prototypes"
        )

    def _expand_variants(self) -> tuple[NodeVariant, ...]:
        variants: list[NodeVariant] = []
        for proto in self.prototypes:
            for rotation in proto.rotations:
                weight = proto.effective_weight * proto.rotation_factor(rotation)
                variants.append(
                    NodeVariant(
                        prototype=proto,
                        rotation=rotation,
                        weight=max(config.MIN_VARIANT_WEIGHT, weight),
                    )
                )
        return tuple(variants)

    def _compute_compatibility(
        self, variants: tuple[NodeVariant, ...]
    ) -> np.ndarray:
        num_variants = len(variants)
        compatible = np.zeros((num_variants, len(FACES), num_variants), dtype=bool)
        if num_variants == 0:
            return compatible

        proto_index = {p.prototype_id: i for i, p in enumerate(self.prototypes)}
        # Prototype index of every variant, for vectorized membership tests
        variant_proto = np.array(
            [proto_index[v.prototype.prototype_id] for v in variants], dtype=np.intp
        )
        empty_variants = np.array([v.is_empty for v in variants], dtype=bool)

        for a, variant in enumerate(variants):
            adj = self.adjacency.get(variant.prototype.prototype_id)
            same_proto = variant_proto == variant_proto[a]

            for face in FACES:
                # Rotate the world face back into the prototype's local frame
                local_face = rotate_face_y(face, -variant.rotation)
                allowed_ids = adj.allowed(local_face) if adj is not None else []

                if allowed_ids:
                    allowed_idx = [proto_index[pid] for pid in allowed_ids]
                    row = np.isin(variant_proto, allowed_idx)
                else:
                    # Never observed in context: empty space or itself
                    row = empty_variants | same_proto

                if variant.is_empty:
                    row = row | empty_variants

                compatible[a, face] = row

        return compatible

    def asymmetric_pairs(self) -> list[tuple[VariantIndex, Face, VariantIndex]]:
        """Find (a, face, b) where a allows b but b does not allow a back.

        A correct model has none; any hit is a data-authoring bug.
        """
        pairs: list[tuple[VariantIndex, Face, VariantIndex]] = []
        for face in FACES:
            forward = self.compatible[:, face, :]
            backward = self.compatible[:, OPPOSITE_FACE[face], :].T
            for a, b in np.argwhere(forward & ~backward):
                pairs.append((VariantIndex(int(a)), face, VariantIndex(int(b))))
        return pairs
