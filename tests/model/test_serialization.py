"""Tests for the JSON model artifact."""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest

from tests.helpers import make_adjacency
from wfc3d.errors import ConfigurationError, ModelFormatError
from wfc3d.faces import Face, FaceMask
from wfc3d.model import (
    NodeSet,
    Prototype,
    load_node_set,
    node_set_from_dict,
    node_set_to_dict,
    save_node_set,
)


def _model() -> NodeSet:
    prototypes = [
        Prototype("air", allow_rotation=False, is_empty=True),
        Prototype(
            "wall",
            base_weight=2.5,
            must_touch_boundary=FaceMask.PX,
            prefer_boundary=FaceMask.PX | FaceMask.PY,
            rotation_bias=(1.0, 0.5, 1.0, 0.5),
            solid_faces=FaceMask.PX,
        ),
    ]
    adjacency = make_adjacency(
        {
            "air": {face: ["air", "wall"] for face in Face},
            "wall": {Face.PX: ["air"], Face.NX: ["wall"]},
        }
    )
    return NodeSet(prototypes, adjacency)


class TestDictForm:
    def test_masks_written_as_face_names(self) -> None:
        data = node_set_to_dict(_model())
        wall = data["prototypes"][1]

        assert data["version"] == 1
        assert wall["id"] == "wall"
        assert wall["must_touch_boundary"] == ["PX"]
        assert wall["prefer_boundary"] == ["PX", "PY"]
        assert data["adjacency"]["wall"]["PX"] == ["air"]
        assert data["adjacency"]["wall"]["PZ"] == []

    def test_reload_rebuilds_same_tensor(self) -> None:
        original = _model()
        original.build()

        restored = node_set_from_dict(node_set_to_dict(original))
        assert not restored.is_built
        restored.build()

        assert restored.prototypes == original.prototypes
        assert restored.variant_ids == original.variant_ids
        assert np.array_equal(restored.compatible, original.compatible)

    def test_omitted_fields_take_defaults(self) -> None:
        node_set = node_set_from_dict({"prototypes": [{"id": "rock"}]})
        assert node_set.prototypes == [Prototype("rock")]
        assert node_set.adjacency == {}

    @pytest.mark.parametrize(
        "data",
        [
            [],
            {"version": 2, "prototypes": []},
            {"prototypes": "rock"},
            {"prototypes": [{"weight": 1}]},
            {"prototypes": [{"id": "rock", "solid_faces": ["UP"]}]},
            {"prototypes": [{"id": "rock"}], "adjacency": {"rock": {"UP": []}}},
            {"prototypes": [{"id": "rock"}], "adjacency": {"rock": {"PX": "rock"}}},
        ],
    )
    def test_malformed_data_rejected(self, data: object) -> None:
        with pytest.raises(ModelFormatError):
            node_set_from_dict(data)

    def test_format_error_is_configuration_error(self) -> None:
        """Callers can catch every setup problem with one exception type."""
        with pytest.raises(ConfigurationError):
            node_set_from_dict({"version": 99})


class TestFiles:
    def test_save_and_load(self, tmp_path: Path) -> None:
        path = tmp_path / "model.json"
        save_node_set(_model(), path)

        loaded = load_node_set(path)
        assert [p.prototype_id for p in loaded.prototypes] == ["air", "wall"]
        assert loaded.adjacency["wall"].allowed(Face.NX) == ["wall"]

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ModelFormatError, match="invalid JSON"):
            load_node_set(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            load_node_set(tmp_path / "missing.json")

    def test_file_is_plain_json(self, tmp_path: Path) -> None:
        path = tmp_path / "model.json"
        save_node_set(_model(), path)
        data = json.loads(path.read_text())
        assert set(data) == {"version", "prototypes", "adjacency"}
