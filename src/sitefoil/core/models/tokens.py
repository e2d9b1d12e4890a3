"""
Module: tokens

Purpose:
    Provides the Token dataclass - the normalized Markov unit derived from a
    Word span - and the Casing pattern needed to re-cast generated words so
    they look like the word they replace.

Key Functions:
    - Casing.of(word): Detect the casing pattern of a word
    - Casing.apply(word): Re-cast a lowercase word to this pattern
    - Token.from_word(word): Build a token from original text
    - is_word(text): True if text would tokenize as a single Word span

Dependencies:
    - re (std)
    - dataclasses (std)
    - enum (std)

Used By:
    - engine.markov: Trains on Token.text
    - engine.mutation.policy: Re-casts replacements
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

# Same character class as Word spans in the tokenizer
WORD_RE = re.compile(r"[^\W_]+")


def is_word(text: str) -> bool:
    """
    True if ``text`` is exactly one Word span.

    Case mapping can leave this set: "İ".lower() ends in the combining mark
    U+0307, which is not alphanumeric.
    """
    return WORD_RE.fullmatch(text) is not None


class Casing(str, Enum):
    """Original casing pattern of a word."""
    LOWER = "lowercase"
    CAPITALIZED = "Capitalized"
    UPPER = "UPPERCASE"
    MIXED = "Mixed"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def of(cls, word: str) -> Casing:
        """
        Detect the casing pattern of ``word``.

        Only cased characters are considered, so "2024" and "x86" are
        LOWER. A single uppercase letter ("A") is CAPITALIZED.

        Example:
            >>> Casing.of("Paris")
            <Casing.CAPITALIZED: 'Capitalized'>
            >>> Casing.of("NASA")
            <Casing.UPPER: 'UPPERCASE'>
            >>> Casing.of("iPhone")
            <Casing.MIXED: 'Mixed'>
        """
        cased = [c for c in word if c.isupper() or c.islower()]
        if not cased or all(c.islower() for c in cased):
            return cls.LOWER
        if cased[0].isupper() and all(c.islower() for c in cased[1:]):
            return cls.CAPITALIZED
        if all(c.isupper() for c in cased):
            return cls.UPPER
        return cls.MIXED

    def apply(self, word: str) -> str:
        """Re-cast ``word`` to this casing pattern. MIXED leaves it alone."""
        if self is Casing.LOWER:
            return word.lower()
        if self is Casing.UPPER:
            return word.upper()
        if self is Casing.CAPITALIZED:
            return word[:1].upper() + word[1:].lower()
        return word


@dataclass(frozen=True, slots=True)
class Token:
    """
    Normalized word used as a Markov unit (immutable).

    Attributes:
        text: Case-folded word text
        casing: Casing pattern of the original word

    Example:
        >>> Token.from_word("Quick")
        Token(text='quick', casing=<Casing.CAPITALIZED: 'Capitalized'>)
    """

    text: str
    casing: Casing = Casing.LOWER

    @classmethod
    def from_word(cls, word: str) -> Token:
        return cls(text=word.lower(), casing=Casing.of(word))

    def recast(self, replacement: str) -> str:
        """Apply this token's casing to a (lowercase) replacement word."""
        return self.casing.apply(replacement)
