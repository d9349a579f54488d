"""
Randomness source for score perturbation.

Scoring never shares a generator between calls: the source spawns an
independent ``random.Random`` per claim. With a seed the generator is
derived from (seed, claim id), so re-scoring a claim under the same seed
reproduces its scores and concurrent scoring calls draw from uncorrelated
streams.
"""

import hashlib
import random
from abc import ABC, abstractmethod
from typing import Optional


class RandomSource(ABC):
    """Base class for randomness sources."""

    @abstractmethod
    def spawn(self, key: str) -> random.Random:
        """Return a generator dedicated to one scoring call for ``key``."""
        pass


class SeededRandomSource(RandomSource):
    """
    Per-key generators derived from an optional seed.

    Without a seed every spawn is seeded from OS entropy.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed

    def spawn(self, key: str) -> random.Random:
        if self.seed is None:
            return random.Random()
        digest = hashlib.sha256(f"{self.seed}:{key}".encode("utf-8")).digest()
        return random.Random(int.from_bytes(digest[:8], "big"))
