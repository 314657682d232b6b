"""Per-run random seeds, so every run of an experiment is reproducible."""

from __future__ import annotations

import random
from typing import List, Optional

import numpy as np
import torch


class RunSeeds:
    """A fixed list of seeds, one per run index.

    ``set(run)`` reseeds torch, numpy and random with that run's seed (and
    optionally a dedicated ``torch.Generator``). The same base seed always
    yields the same list; ``new_seeds()`` draws a fresh list.
    """

    def __init__(self, n: int = 100, base_seed: Optional[int] = None):
        self.n = n
        self.base_seed = base_seed
        self.seeds: List[int] = []
        self._generate(base_seed)

    def _generate(self, base_seed: Optional[int]) -> None:
        rng = np.random.default_rng(base_seed)
        self.seeds = [int(s) for s in rng.integers(0, 2**31 - 1, size=self.n)]

    def new_seeds(self) -> None:
        self._generate(None)

    def seed_for(self, run: int) -> int:
        return self.seeds[run % self.n]

    def set(self, run: int, generator: Optional[torch.Generator] = None) -> int:
        seed = self.seed_for(run)
        torch.manual_seed(seed)
        np.random.seed(seed)
        random.seed(seed)
        if generator is not None:
            generator.manual_seed(seed)
        return seed
