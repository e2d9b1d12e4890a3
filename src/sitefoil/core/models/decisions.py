"""
Module: decisions

Purpose:
    Provides MutationDecision - the per-word outcome of the mutation policy.

Dependencies:
    - dataclasses (std)

Used By:
    - engine.mutation.policy: Produces decisions
    - engine.content: Applies decisions during reassembly
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class MutationDecision:
    """
    Mutate/keep decision for one Word span (immutable).

    Attributes:
        span_index: Index of the Word span in the document's span list
        original: Original word text
        mutate: Whether the word is replaced
        replacement: Re-cast replacement text when mutate is True
        eligible: False when exclusion rules protected the word

    Invariants:
        - mutate implies replacement is a non-empty string
        - mutate implies eligible
    """

    span_index: int
    original: str
    mutate: bool = False
    replacement: Optional[str] = None
    eligible: bool = True

    def __post_init__(self) -> None:
        """Validate decision on construction."""
        if self.mutate and not self.replacement:
            raise ValueError(f"mutating decision at span {self.span_index} has no replacement")
        if self.mutate and not self.eligible:
            raise ValueError(f"ineligible word at span {self.span_index} cannot mutate")

    @classmethod
    def keep(cls, span_index: int, original: str, *, eligible: bool = True) -> MutationDecision:
        return cls(span_index=span_index, original=original, eligible=eligible)

    @property
    def output(self) -> str:
        """Text emitted for this word."""
        return self.replacement if self.mutate else self.original
