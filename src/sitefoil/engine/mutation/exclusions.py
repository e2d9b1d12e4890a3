"""
Module: engine.mutation.exclusions

Purpose:
    Decides which words are protected from mutation. Two layers:

    - Protected words (URLs, e-mail addresses, identifiers, numbers) are
      found by running the exclusion patterns over each contiguous run of
      text. They are left out of the token stream entirely, so they never
      train the model nor serve as sampling context.
    - Ineligible words (too short, explicitly excluded) stay in the token
      stream as context but are never replaced.

Key Functions:
    - protected_words(): Span indices of protected Word spans
    - is_eligible(): Length and exclusion-set check for one word

Dependencies:
    - re, bisect (std)

Used By:
    - engine.mutation.policy
    - engine.content.scan_content()
"""

from __future__ import annotations

import re
from bisect import bisect_right
from functools import lru_cache
from typing import FrozenSet, Iterator, List, Pattern, Sequence, Tuple

from sitefoil.core.models import Span, SpanKind

from ..config import ExclusionRules


@lru_cache(maxsize=32)
def _compile(patterns: Tuple[str, ...]) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(p) for p in patterns)


def _text_runs(spans: Sequence[Span]) -> Iterator[List[Tuple[int, Span]]]:
    """Yield maximal runs of consecutive Word/Punctuation/Whitespace spans."""
    run: List[Tuple[int, Span]] = []
    for index, span in enumerate(spans):
        if span.is_text:
            run.append((index, span))
        elif run:
            yield run
            run = []
    if run:
        yield run


def protected_words(spans: Sequence[Span], rules: ExclusionRules) -> FrozenSet[int]:
    """
    Find Word spans that must never be mutated nor used as context.

    A word is protected if it overlaps any exclusion pattern match within
    its text run, or (with skip_numeric) consists only of numeric
    characters.

    Args:
        spans: Document spans
        rules: Exclusion rules

    Returns:
        Span indices of protected words

    Example:
        >>> spans = segment_text("see https://example.com now")
        >>> sorted(spans[i].text for i in protected_words(spans, ExclusionRules()))
        ['com', 'example', 'https']
    """
    patterns = _compile(rules.patterns)
    protected = set()

    for run in _text_runs(spans):
        words = [(index, span) for index, span in run if span.kind is SpanKind.WORD]
        if not words:
            continue
        if rules.skip_numeric:
            protected.update(index for index, span in words if span.text.isnumeric())
        if not patterns:
            continue

        base = run[0][1].start
        text = "".join(span.text for _, span in run)
        ends = [span.end - base for _, span in words]
        for pattern in patterns:
            for match in pattern.finditer(text):
                if match.start() == match.end():
                    continue
                # First word ending after the match starts
                i = bisect_right(ends, match.start())
                while i < len(words) and words[i][1].start - base < match.end():
                    protected.add(words[i][0])
                    i += 1

    return frozenset(protected)


def is_eligible(word: str, rules: ExclusionRules) -> bool:
    """True if ``word`` is long enough and not in the exclusion set."""
    if len(word) < rules.min_length:
        return False
    return word.lower() not in rules.exclude_words
