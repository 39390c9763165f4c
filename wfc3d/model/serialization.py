"""JSON artifact for a compatibility model.

The artifact is the contract between the offline learning tools and the
solver:

    {
      "version": 1,
      "prototypes": [
        {"id": "wall", "allow_rotation": true, "base_weight": 1.0,
         "must_touch_boundary": ["PX"], ...},
        ...
      ],
      "adjacency": {
        "wall": {"PX": ["air"], "NX": ["floor", "wall"], ...},
        ...
      }
    }

Face masks are lists of face names. Omitted prototype fields take the
Prototype defaults; omitted adjacency faces are empty.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from wfc3d import config
from wfc3d.errors import ModelFormatError
from wfc3d.faces import FACES, Face, mask_from_names, mask_to_names
from wfc3d.model.node_set import NodeSet
from wfc3d.model.prototype import Prototype, PrototypeAdjacency

logger = logging.getLogger(__name__)

_MASK_FIELDS = (
    "must_touch_boundary",
    "forbid_boundary",
    "prefer_boundary",
    "avoid_boundary",
    "solid_faces",
)
_FLOAT_FIELDS = (
    "base_weight",
    "learned_weight",
    "prefer_multiplier",
    "avoid_multiplier",
)
_BOOL_FIELDS = ("allow_rotation", "use_learned_weight", "is_empty")


def prototype_to_dict(proto: Prototype) -> dict[str, Any]:
    data: dict[str, Any] = {"id": proto.prototype_id}
    for name in _BOOL_FIELDS + _FLOAT_FIELDS:
        data[name] = getattr(proto, name)
    for name in _MASK_FIELDS:
        data[name] = mask_to_names(getattr(proto, name))
    data["rotation_bias"] = list(proto.rotation_bias)
    return data


def prototype_from_dict(data: Any) -> Prototype:
    if not isinstance(data, dict):
        raise ModelFormatError(f"Prototype entry must be an object, got {data!r}")
    if not isinstance(data.get("id"), str):
        raise ModelFormatError(f"Prototype entry is missing a string 'id': {data!r}")

    kwargs: dict[str, Any] = {"prototype_id": data["id"]}
    try:
        for name in _BOOL_FIELDS:
            if name in data:
                kwargs[name] = bool(data[name])
        for name in _FLOAT_FIELDS:
            if name in data:
                kwargs[name] = float(data[name])
        for name in _MASK_FIELDS:
            if name in data:
                kwargs[name] = mask_from_names(data[name])
        if "rotation_bias" in data:
            kwargs["rotation_bias"] = tuple(float(b) for b in data["rotation_bias"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ModelFormatError(f"Bad field in prototype {data['id']!r}: {exc}") from exc

    return Prototype(**kwargs)


def node_set_to_dict(node_set: NodeSet) -> dict[str, Any]:
    return {
        "version": config.MODEL_FORMAT_VERSION,
        "prototypes": [prototype_to_dict(p) for p in node_set.prototypes],
        "adjacency": {
            pid: {face.name: list(adj.allowed(face)) for face in FACES}
            for pid, adj in node_set.adjacency.items()
        },
    }


def node_set_from_dict(data: Any) -> NodeSet:
    """Create an unbuilt NodeSet from artifact data."""
    if not isinstance(data, dict):
        raise ModelFormatError("Model artifact must be a JSON object")

    version = data.get("version", config.MODEL_FORMAT_VERSION)
    if version != config.MODEL_FORMAT_VERSION:
        raise ModelFormatError(
            f"Unsupported model version {version!r}, "
            f"expected {config.MODEL_FORMAT_VERSION}"
        )

    raw_prototypes = data.get("prototypes")
    if not isinstance(raw_prototypes, list):
        raise ModelFormatError("Model artifact needs a 'prototypes' list")
    prototypes = [prototype_from_dict(entry) for entry in raw_prototypes]

    raw_adjacency = data.get("adjacency", {})
    if not isinstance(raw_adjacency, dict):
        raise ModelFormatError("'adjacency' must be an object")

    adjacency: dict[str, PrototypeAdjacency] = {}
    for pid, faces in raw_adjacency.items():
        if not isinstance(faces, dict):
            raise ModelFormatError(f"Adjacency for {pid!r} must be an object")
        adj = PrototypeAdjacency(pid)
        for face_name, neighbor_ids in faces.items():
            if face_name not in Face.__members__:
                raise ModelFormatError(
                    f"Adjacency for {pid!r} has unknown face {face_name!r}"
                )
            if not isinstance(neighbor_ids, list):
                raise ModelFormatError(
                    f"Adjacency {pid!r} {face_name} must be a list of ids"
                )
            for neighbor_id in neighbor_ids:
                adj.add(Face[face_name], str(neighbor_id))
        adjacency[pid] = adj

    return NodeSet(prototypes, adjacency)


def save_node_set(node_set: NodeSet, path: str | Path) -> None:
    """Write a model artifact as JSON."""
    with Path(path).open("w") as f:
        json.dump(node_set_to_dict(node_set), f, indent=2)
    logger.debug(f"Saved model with {len(node_set.prototypes)} prototypes to {path}")


def load_node_set(path: str | Path) -> NodeSet:
    """Read a model artifact. The returned NodeSet still needs build()."""
    try:
        with Path(path).open() as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ModelFormatError(f"{path}: invalid JSON: {exc}") from exc

    node_set = node_set_from_dict(data)
    logger.debug(f"Loaded model with {len(node_set.prototypes)} prototypes from {path}")
    return node_set
