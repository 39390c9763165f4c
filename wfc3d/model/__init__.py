"""Compatibility model for wfc3d.

This package turns authored or learned content data into solver input:
- Prototype / NodeVariant: tile definitions and their rotated variants
- NodeSet: variant list plus the (V, 6, V) compatibility tensor
- learn_adjacency / learn_weights: offline learning from example placements
- load_node_set / save_node_set: the JSON model artifact
"""

from .learning import learn_adjacency, learn_weights
from .node_set import NodeSet
from .prototype import NodeVariant, Prototype, PrototypeAdjacency
from .serialization import (
    load_node_set,
    node_set_from_dict,
    node_set_to_dict,
    save_node_set,
)

__all__ = [
    "NodeSet",
    "NodeVariant",
    "Prototype",
    "PrototypeAdjacency",
    "learn_adjacency",
    "learn_weights",
    "load_node_set",
    "node_set_from_dict",
    "node_set_to_dict",
    "save_node_set",
]
