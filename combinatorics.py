# omaha_nuts/combinatorics.py
"""Перебор k-сочетаний без повторений, в лексикографическом порядке индексов."""
import itertools
import math
from typing import Iterator, Sequence, Tuple, TypeVar

T = TypeVar('T')


class Combinations:
    """Конечная перезапускаемая последовательность: каждый iter() начинает перебор заново."""

    def __init__(self, sequence: Sequence[T], k: int):
        if k < 0: raise ValueError(f"k must be non-negative, got {k}")
        self.pool: Tuple[T, ...] = tuple(sequence)
        self.k = k

    def __iter__(self) -> Iterator[Tuple[T, ...]]:
        return itertools.combinations(self.pool, self.k)

    def __len__(self) -> int:
        return math.comb(len(self.pool), self.k)

    def __repr__(self) -> str:
        return f"Combinations(n={len(self.pool)}, k={self.k})"


def combinations(sequence: Sequence[T], k: int) -> Combinations:
    return Combinations(sequence, k)
