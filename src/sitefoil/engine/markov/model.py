"""
Module: engine.markov.model

Purpose:
    Immutable order-k Markov model used during the mutation phase. Shared
    read-only by all workers.

Key Classes:
    - MarkovModel: Context -> FrequencyTable mapping with back-off sampling

Dependencies:
    - engine.markov.sampling.FrequencyTable

Used By:
    - engine.mutation.policy: Samples replacement words
    - engine.maze: Free-running text generation
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Mapping, Sequence, Tuple

from ..errors import ModelExhausted
from .sampling import FrequencyTable


@dataclass(frozen=True, eq=False)
class MarkovModel:
    """
    Frozen Markov model (read-only after construction).

    Attributes:
        order: Maximum context length k
        tables: Context tuple (length 0..k) -> FrequencyTable

    Invariants:
        - Every context key was observed at least once in training
        - The empty context () is present whenever any token was trained

    Example:
        >>> builder = ModelBuilder(order=1)
        >>> builder.train([Token("the"), Token("cat")])
        >>> model = builder.freeze()
        >>> model.sample(("the",), random.Random(0))
        'cat'
    """

    order: int
    tables: Mapping[Tuple[str, ...], FrequencyTable] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tables", MappingProxyType(dict(self.tables)))

    @classmethod
    def empty(cls, order: int = 2) -> MarkovModel:
        return cls(order=order, tables={})

    @property
    def is_empty(self) -> bool:
        table = self.tables.get(())
        return table is None or not table

    @property
    def vocabulary_size(self) -> int:
        table = self.tables.get(())
        return len(table) if table is not None else 0

    @property
    def context_count(self) -> int:
        return len(self.tables)

    def table_for(self, context: Sequence[str]) -> FrequencyTable:
        """
        Find the longest known suffix of ``context`` (up to k tokens).

        Raises:
            ModelExhausted: If no table matches, which only happens for an
                empty model
        """
        ctx = tuple(context)[-self.order:] if context else ()
        for length in range(len(ctx), -1, -1):
            table = self.tables.get(ctx[len(ctx) - length:])
            if table:
                return table
        raise ModelExhausted("Markov model has no trained tokens")

    def sample(self, context: Sequence[str], rng: random.Random) -> str:
        """
        Sample the next token after ``context``.

        Looks up the exact context (last k tokens); if absent, drops the
        oldest token repeatedly down to the unconditional table.

        Args:
            context: Preceding case-folded tokens, oldest first
            rng: Random source owned by the caller

        Returns:
            Case-folded token

        Raises:
            ModelExhausted: If the model is empty
        """
        return self.table_for(context).sample(rng)

    def generate(self, count: int, rng: random.Random) -> List[str]:
        """Generate ``count`` tokens, each conditioned on the last k generated."""
        tokens: List[str] = []
        for _ in range(count):
            tokens.append(self.sample(tokens[-self.order:], rng))
        return tokens
