"""Deterministic seed derivation for reproducible batches of solves.

A solver never touches a process-wide generator: it owns a private
`random.Random` seeded from `SolverSettings.seed`. When a caller needs many
reproducible runs (a batch of generations, a benchmark), it derives the seed
of each run from a master seed with an `RNGProvider`:

    provider = RNGProvider(master_seed="dungeon-42")
    for i in range(10):
        settings = SolverSettings(seed=provider.seed_for(f"level.{i}"))

Each domain name maps to its own seed, so adding or removing one run never
shifts the seeds of the others.

Domain naming convention (hierarchical):
    - "solve.<run>"    - per-run solver seeds
    - "bench.<size>"   - benchmark cases
"""

from __future__ import annotations

import zlib
from random import Random

from wfc3d.types import RandomSeed

# Solver seeds are kept non-negative; negative seeds mean "unseeded".
_SEED_BITS = 31


def derive_seed(master_seed: RandomSeed, domain: str) -> int:
    """Derive a stable non-negative integer seed for a domain.

    Uses crc32 instead of hash() - hash() is randomized per Python session via
    PYTHONHASHSEED, which would break cross-session determinism.
    """
    return zlib.crc32(f"{master_seed}:{domain}".encode()) & ((1 << _SEED_BITS) - 1)


class RNGProvider:
    """Hands out per-run solver seeds derived from one master seed."""

    def __init__(self, master_seed: RandomSeed = None) -> None:
        self._master_seed = master_seed

    @property
    def master_seed(self) -> RandomSeed:
        return self._master_seed

    def seed_for(self, domain: str) -> int:
        """Return the solver seed for a domain.

        Without a master seed, the seed is drawn from OS entropy, so runs are
        not reproducible.
        """
        if self._master_seed is None:
            return Random().getrandbits(_SEED_BITS)
        return derive_seed(self._master_seed, domain)
