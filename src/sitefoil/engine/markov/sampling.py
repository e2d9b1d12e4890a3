"""
Module: engine.markov.sampling

Purpose:
    Weighted random choice over observed follow-on tokens. Each table keeps
    a cumulative count array; one integer draw in [0, total) and a binary
    search pick the candidate, so candidate lists are never expanded by
    weight.

Key Classes:
    - FrequencyTable: Immutable candidates + cumulative counts

Dependencies:
    - numpy: Cumulative arrays and searchsorted
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Mapping, Tuple

import numpy as np


@dataclass(frozen=True, eq=False)
class FrequencyTable:
    """
    Candidates observed after one context, with cumulative counts.

    Attributes:
        tokens: Candidate tokens in sorted order
        cumulative: Running totals of counts (int64), same length as tokens

    Example:
        >>> table = FrequencyTable.from_counts({"cat": 1, "dog": 3})
        >>> table.total
        4
        >>> table.tokens
        ('cat', 'dog')
    """

    tokens: Tuple[str, ...]
    cumulative: np.ndarray

    @classmethod
    def from_counts(cls, counts: Mapping[str, int]) -> FrequencyTable:
        """Build a table; candidates are sorted so the result ignores insertion order."""
        items = sorted((token, n) for token, n in counts.items() if n > 0)
        tokens = tuple(token for token, _ in items)
        weights = np.fromiter((n for _, n in items), dtype=np.int64, count=len(items))
        cumulative = np.cumsum(weights, dtype=np.int64)
        cumulative.setflags(write=False)
        return cls(tokens=tokens, cumulative=cumulative)

    @property
    def total(self) -> int:
        return int(self.cumulative[-1]) if len(self.cumulative) else 0

    def __len__(self) -> int:
        return len(self.tokens)

    def __bool__(self) -> bool:
        return bool(self.tokens)

    def sample(self, rng: random.Random) -> str:
        """
        Draw one candidate with probability proportional to its count.

        Raises:
            ValueError: If the table is empty
        """
        if not self.tokens:
            raise ValueError("cannot sample from an empty frequency table")
        draw = rng.randrange(self.total)
        idx = int(np.searchsorted(self.cumulative, draw, side="right"))
        return self.tokens[idx]
