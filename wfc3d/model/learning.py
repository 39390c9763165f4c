"""Offline batch tools that learn model data from example placements.

An example is a mapping from grid position to prototype id, e.g. one hand-built
room sampled onto the cell grid. Positions not present in the mapping are
treated as empty space.

    adjacency = learn_adjacency(rooms, [p.prototype_id for p in prototypes], "air")
    prototypes = learn_weights(rooms, prototypes)
    node_set = NodeSet(prototypes, adjacency)
    node_set.build()

These run ahead of time; the solver only ever sees their output.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace
from typing import TypeAlias

from wfc3d import config
from wfc3d.errors import ConfigurationError
from wfc3d.faces import FACE_OFFSETS, FACES, OPPOSITE_FACE
from wfc3d.model.prototype import Prototype, PrototypeAdjacency
from wfc3d.types import GridPos, PrototypeId

logger = logging.getLogger(__name__)

Example: TypeAlias = Mapping[GridPos, PrototypeId]


def learn_adjacency(
    examples: Iterable[Example],
    prototype_ids: Sequence[PrototypeId],
    empty_id: PrototypeId | None = None,
) -> dict[PrototypeId, PrototypeAdjacency]:
    """Learn which prototypes may touch across each face.

    Every observed pair is recorded in both directions (A's face and B's
    opposite face). A face with no placed neighbor records the empty
    prototype, when one is given. The empty prototype is finally allowed next
    to itself on every face so empty regions can exist.

    Args:
        examples: Example placements.
        prototype_ids: Known prototypes. Unknown ids in examples are skipped.
        empty_id: Id of the empty-space prototype, if any.

    Returns:
        Adjacency per prototype id, in prototype_ids order.
    """
    known = set(prototype_ids)
    if empty_id is not None and empty_id not in known:
        raise ConfigurationError(f"Empty prototype {empty_id!r} is not a known prototype")

    adjacency = {pid: PrototypeAdjacency(pid) for pid in prototype_ids}
    pairs_added = 0
    num_examples = 0

    for example in examples:
        num_examples += 1
        placed: dict[GridPos, PrototypeId] = {}
        for pos, pid in example.items():
            if pid not in known:
                logger.warning(f"Adjacency: unknown prototype {pid!r} at {pos}, skipped")
                continue
            placed[pos] = pid

        for (x, y, z), a in placed.items():
            for face in FACES:
                dx, dy, dz = FACE_OFFSETS[face]
                b = placed.get((x + dx, y + dy, z + dz), empty_id)
                if b is None:
                    continue
                if adjacency[a].add(face, b):
                    pairs_added += 1
                if adjacency[b].add(OPPOSITE_FACE[face], a):
                    pairs_added += 1

    if empty_id is not None:
        for face in FACES:
            adjacency[empty_id].add(face, empty_id)

    logger.info(
        f"Adjacency: learned from {num_examples} example(s). "
        f"Added ~{pairs_added} directed face pairs."
    )
    return adjacency


def learn_weights(
    examples: Iterable[Example],
    prototypes: Sequence[Prototype],
    laplace_alpha: float = config.LAPLACE_ALPHA,
    gamma: float = config.WEIGHT_GAMMA,
    normalize: bool = config.NORMALIZE_WEIGHTS,
) -> list[Prototype]:
    """Learn prototype weights from placement frequencies.

    Each prototype's probability is its smoothed count over the smoothed
    total, raised to `gamma`. With `normalize`, weights are scaled so their
    mean is 1.0.

    Returns:
        New prototypes with learned_weight set and use_learned_weight enabled.

    Raises:
        ConfigurationError: If the examples contain no known placements.
    """
    known = {p.prototype_id for p in prototypes}
    counts: Counter[PrototypeId] = Counter()
    for example in examples:
        for pid in example.values():
            if pid in known:
                counts[pid] += 1

    total_placements = sum(counts.values())
    if total_placements == 0:
        raise ConfigurationError("No placements of known prototypes in the examples")

    denom = sum(counts[p.prototype_id] + laplace_alpha for p in prototypes)
    weights: dict[PrototypeId, float] = {}
    for proto in prototypes:
        smoothed = counts[proto.prototype_id] + laplace_alpha
        prob = max(1e-8, smoothed / max(1e-8, denom))
        weights[proto.prototype_id] = prob ** max(1e-6, gamma)

    if normalize:
        mean = sum(weights.values()) / max(1, len(weights))
        scale = 1.0 / mean if mean > 1e-6 else 1.0
        weights = {pid: w * scale for pid, w in weights.items()}

    logger.info(
        f"Learned weights for {len(prototypes)} prototypes. "
        f"Total placements counted: {total_placements}."
    )
    return [
        replace(p, learned_weight=weights[p.prototype_id], use_learned_weight=True)
        for p in prototypes
    ]
