"""Tests for variant expansion and the compatibility tensor."""

from __future__ import annotations

import numpy as np
import pytest

from tests.helpers import all_faces, build, gradient_node_set, lonely_node_set
from wfc3d import config
from wfc3d.errors import ConfigurationError
from wfc3d.faces import FACES, Face, FaceMask
from wfc3d.model import NodeSet, Prototype, PrototypeAdjacency

# =============================================================================
# Variant Expansion
# =============================================================================


class TestVariants:
    """Tests for prototype x rotation expansion."""

    def test_rotation_allowed_gives_four_variants(self) -> None:
        node_set = build([Prototype("wall")])
        assert node_set.variant_ids == ["wall@R0", "wall@R1", "wall@R2", "wall@R3"]

    def test_rotation_disallowed_gives_one_variant(self) -> None:
        node_set = build([Prototype("floor", allow_rotation=False)])
        assert node_set.variant_ids == ["floor@R0"]

    def test_variant_order_follows_prototype_order(self) -> None:
        node_set = build(
            [Prototype("b", allow_rotation=False), Prototype("a", allow_rotation=False)]
        )
        assert node_set.variant_ids == ["b@R0", "a@R0"]

    def test_weight_includes_rotation_bias(self) -> None:
        proto = Prototype("wall", base_weight=2.0, rotation_bias=(1.0, 0.5, 2.0, 1.0))
        node_set = build([proto])
        weights = [v.weight for v in node_set.variants]
        assert weights == pytest.approx([2.0, 1.0, 4.0, 2.0])

    def test_weight_floored_to_epsilon(self) -> None:
        """Zero weights become a small positive epsilon."""
        node_set = build([Prototype("ghost", allow_rotation=False, base_weight=0.0)])
        assert node_set.variants[0].weight == config.MIN_VARIANT_WEIGHT

    def test_learned_weight_used_when_enabled(self) -> None:
        proto = Prototype(
            "x",
            allow_rotation=False,
            base_weight=1.0,
            learned_weight=5.0,
            use_learned_weight=True,
        )
        assert build([proto]).variants[0].weight == pytest.approx(5.0)

    def test_variant_index_lookup(self) -> None:
        node_set = build([Prototype("wall")])
        assert node_set.variant_index("wall@R2") == 2
        with pytest.raises(KeyError):
            node_set.variant_index("wall@R9")


# =============================================================================
# Compatibility Tensor
# =============================================================================


class TestCompatibility:
    """Tests for the (V, 6, V) compatibility tensor."""

    def test_tensor_shape(self) -> None:
        node_set = gradient_node_set()
        assert node_set.compatible.shape == (3, 6, 3)
        assert node_set.compatible.dtype == bool

    def test_learned_lists_are_respected(self) -> None:
        node_set = gradient_node_set()
        a, b, c = 0, 1, 2
        for face in FACES:
            assert node_set.compatible[a, face, b]
            assert node_set.compatible[b, face, c]
            assert not node_set.compatible[a, face, c]
            assert not node_set.compatible[c, face, a]

    def test_gradient_model_is_symmetric(self) -> None:
        assert gradient_node_set().asymmetric_pairs() == []

    def test_empty_always_compatible_with_itself(self) -> None:
        """Empty variants may touch each other even if nothing was learned for them."""
        node_set = build(
            [Prototype("air", is_empty=True), Prototype("rock", allow_rotation=False)],
            {"air": all_faces("rock")},
        )
        air_variants = [i for i, v in enumerate(node_set.variants) if v.is_empty]
        assert len(air_variants) == 4
        for a in air_variants:
            for b in air_variants:
                for face in FACES:
                    assert node_set.compatible[a, face, b]

    def test_unseen_face_allows_empty_and_self(self) -> None:
        """A face with no learned neighbors falls back to empty + own prototype."""
        node_set = build(
            [
                Prototype("A", allow_rotation=False),
                Prototype("B", allow_rotation=False),
                Prototype("air", allow_rotation=False, is_empty=True),
            ],
            {"A": {Face.PX: ["B"]}},
        )
        a, b, air = 0, 1, 2
        # Learned face: only B
        assert node_set.compatible[a, Face.PX, b]
        assert not node_set.compatible[a, Face.PX, a]
        assert not node_set.compatible[a, Face.PX, air]
        # Unseen faces: air and self, never B
        for face in (Face.NX, Face.PY, Face.NY, Face.PZ, Face.NZ):
            assert node_set.compatible[a, face, a]
            assert node_set.compatible[a, face, air]
            assert not node_set.compatible[a, face, b]

    def test_face_rotated_into_local_frame(self) -> None:
        """A wall rotated by one turn exposes its local +X face on world +Z."""
        node_set = build(
            [
                Prototype("wall"),
                Prototype("door", allow_rotation=False),
                Prototype("air", allow_rotation=False, is_empty=True),
            ],
            {"wall": {face: ["air"] for face in FACES} | {Face.PX: ["door"]}},
        )
        door = node_set.variant_index("door@R0")
        r0 = node_set.variant_index("wall@R0")
        r1 = node_set.variant_index("wall@R1")

        assert node_set.compatible[r0, Face.PX, door]
        assert not node_set.compatible[r0, Face.PZ, door]
        assert node_set.compatible[r1, Face.PZ, door]
        assert not node_set.compatible[r1, Face.PX, door]

    def test_asymmetric_model_is_reported(self) -> None:
        node_set = lonely_node_set()
        pairs = node_set.asymmetric_pairs()
        # A allows empty across PX, empty only allows empty back
        assert (0, Face.PX, 1) in pairs

    def test_build_is_deterministic(self) -> None:
        first = gradient_node_set()
        second = gradient_node_set()
        assert first.variant_ids == second.variant_ids
        assert np.array_equal(first.compatible, second.compatible)


# =============================================================================
# Validation and Build Lifecycle
# =============================================================================


class TestValidation:
    """Tests for validate() and atomic build()."""

    def test_empty_prototype_list_builds_empty_model(self) -> None:
        node_set = NodeSet()
        node_set.build()
        assert node_set.num_variants == 0
        assert node_set.compatible.shape == (0, 6, 0)

    def test_duplicate_ids_rejected(self) -> None:
        node_set = NodeSet([Prototype("x"), Prototype("x")])
        with pytest.raises(ConfigurationError, match="duplicate"):
            node_set.validate()

    def test_two_empty_prototypes_rejected(self) -> None:
        node_set = NodeSet(
            [Prototype("air", is_empty=True), Prototype("void", is_empty=True)]
        )
        with pytest.raises(ConfigurationError, match="more than one empty"):
            node_set.validate()

    def test_unknown_neighbor_rejected(self) -> None:
        adj = PrototypeAdjacency("x")
        adj.add(Face.PX, "ghost")
        node_set = NodeSet([Prototype("x")], {"x": adj})
        with pytest.raises(ConfigurationError, match="ghost"):
            node_set.validate()

    def test_multiplier_out_of_range_rejected(self) -> None:
        node_set = NodeSet([Prototype("x", prefer_multiplier=10.0)])
        with pytest.raises(ConfigurationError, match="prefer_multiplier"):
            node_set.validate()

    def test_conflicting_directives_rejected(self) -> None:
        proto = Prototype(
            "x", must_touch_boundary=FaceMask.PX, forbid_boundary=FaceMask.PX
        )
        with pytest.raises(ConfigurationError):
            NodeSet([proto]).validate()

    def test_failed_build_keeps_previous_state(self) -> None:
        """A rebuild that fails validation leaves the old tensor in place."""
        node_set = gradient_node_set()
        before_ids = node_set.variant_ids
        before = node_set.compatible.copy()

        node_set.prototypes.append(Prototype("A"))  # duplicate id
        with pytest.raises(ConfigurationError):
            node_set.build()

        assert node_set.variant_ids == before_ids
        assert np.array_equal(node_set.compatible, before)
        assert node_set.is_built

    def test_rebuild_picks_up_new_data(self) -> None:
        node_set = gradient_node_set()
        node_set.prototypes.append(Prototype("D", allow_rotation=False))
        node_set.build()
        assert node_set.num_variants == 4
        assert node_set.compatible.shape == (4, 6, 4)
