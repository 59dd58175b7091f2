# tsptw_annealer/rng.py
from __future__ import annotations
from typing import MutableSequence, Optional
import random


class RandomSource:
    """
    Uniform [0,1) stream shared by a route and the annealer that drives it.
    Every draw the solver makes goes through uniform(), so a seed replays a
    whole run draw for draw.
    """
    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def uniform(self) -> float:
        return self._rng.random()

    def shuffle_tail(self, seq: MutableSequence, start: int = 1) -> None:
        """Fisher-Yates over seq[start:]; seq[:start] is left in place."""
        for i in range(len(seq) - 1, start, -1):
            j = start + int(self.uniform() * (i - start + 1))
            seq[i], seq[j] = seq[j], seq[i]

    def reseed(self, seed: Optional[int]) -> None:
        self._rng.seed(seed)


_DEFAULT = RandomSource()


def default_source() -> RandomSource:
    return _DEFAULT


def seed(value: Optional[int]) -> None:
    _DEFAULT.reseed(value)
