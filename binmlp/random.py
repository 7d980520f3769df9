"""Explicit, reseedable pseudo-random source.

Every randomized operation (parameter initialization, data splitting, batch
shuffling) receives an ``Rng`` instance; there is no module level generator.
"""
from __future__ import annotations
import math
import numpy as np
from typing import Optional


class Rng:
    """Seeded uniform generator with a Box-Muller normal sampler on top."""

    def __init__(self, seed: int = 123) -> None:
        self.seed(seed)

    def seed(self, value: int) -> None:
        self._seed = int(value)
        self._gen = np.random.Generator(np.random.PCG64(self._seed))
        self._spare: Optional[float] = None

    @property
    def initial_seed(self) -> int:
        return self._seed

    def uniform(self) -> float:
        """Draw from [0, 1)."""
        return float(self._gen.random())

    def normal(self, mean: float = 0.0, stddev: float = 1.0) -> float:
        if self._spare is not None:
            z = self._spare
            self._spare = None
            return mean + stddev * z
        # 1 - u keeps the argument of log strictly positive
        u1 = 1.0 - self.uniform()
        u2 = self.uniform()
        radius = math.sqrt(-2.0 * math.log(u1))
        theta = 2.0 * math.pi * u2
        self._spare = radius * math.sin(theta)
        return mean + stddev * radius * math.cos(theta)

    def randint(self, upper: int) -> int:
        """Uniform integer in [0, upper)."""
        return min(int(self.uniform() * upper), upper - 1)

    def permutation(self, n: int) -> np.ndarray:
        """Fisher-Yates shuffle of ``0..n-1``."""
        idx = np.arange(n)
        for i in range(n - 1, 0, -1):
            j = self.randint(i + 1)
            idx[i], idx[j] = idx[j], idx[i]
        return idx

    def __repr__(self) -> str:
        return f"<Rng seed={self._seed}>"
