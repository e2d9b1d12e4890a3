"""
Module: engine.markov.builder

Purpose:
    Accumulates transition counts during the inventory phase. Builders from
    different files merge by count addition, which is associative and
    commutative, so files can be scanned in parallel and merged in any
    order.

Key Classes:
    - ModelBuilder: Mutable count accumulator, frozen into a MarkovModel

Key Functions:
    - token_stream(): Word tokens and sentence breaks derived from spans

Algorithm:
    For each token, the count of that token is incremented under every
    context of length 0..min(k, tokens since the last sentence break).
    Keeping the shorter contexts is what lets sampling back off from an
    unseen k-token context.

Dependencies:
    - collections.Counter (std)

Used By:
    - engine.content.scan_content(): One builder per file
    - driver.pipeline: Merges builders and freezes the model
    - engine.mutation.policy: Uses token_stream() for sampling context
"""

from __future__ import annotations

import logging
from collections import Counter, deque
from typing import AbstractSet, Dict, Iterable, Iterator, Optional, Tuple, Union

from sitefoil.core.models import Span, SpanKind, Token, is_word

from .model import MarkovModel
from .sampling import FrequencyTable

logger = logging.getLogger(__name__)


class _SentenceBreak:
    """Marker resetting the context window."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SENTENCE_BREAK"


SENTENCE_BREAK = _SentenceBreak()

SENTENCE_END_CHARS = frozenset(".!?…")

BLOCK_ELEMENTS = frozenset({
    "address", "article", "aside", "blockquote", "body", "br", "caption",
    "dd", "details", "dialog", "div", "dl", "dt", "fieldset", "figcaption",
    "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6", "head",
    "header", "hr", "html", "li", "main", "nav", "ol", "p", "section",
    "summary", "table", "tbody", "td", "tfoot", "th", "thead", "title",
    "tr", "ul",
})

StreamItem = Union[Token, _SentenceBreak]


def is_sentence_break(span: Span) -> bool:
    """True if ``span`` ends a sentence or a block of text."""
    if span.kind is SpanKind.PUNCTUATION:
        return any(ch in SENTENCE_END_CHARS for ch in span.text)
    if span.kind is SpanKind.OPAQUE:
        return True
    if span.kind is SpanKind.STRUCTURAL:
        return span.element in BLOCK_ELEMENTS
    return False


def token_stream(
    spans: Iterable[Span],
    skip: Optional[AbstractSet[int]] = None,
) -> Iterator[Tuple[int, StreamItem]]:
    """
    Yield (span index, Token) for words and (span index, SENTENCE_BREAK)
    for boundaries.

    Args:
        spans: Document spans
        skip: Span indices of words left out of the stream entirely
            (URLs, identifiers, numbers) so they neither train the model
            nor serve as sampling context

    Example:
        >>> spans = segment_text("Hi. Bye")
        >>> [item for _, item in token_stream(spans)]
        [Token(text='hi', ...), SENTENCE_BREAK, Token(text='bye', ...)]
    """
    skip = skip or frozenset()
    for index, span in enumerate(spans):
        if span.kind is SpanKind.WORD:
            if index not in skip:
                yield index, Token.from_word(span.text)
        elif is_sentence_break(span):
            yield index, SENTENCE_BREAK


class ModelBuilder:
    """
    Accumulates context -> follow-on token counts.

    Usage:
        builder = ModelBuilder(order=2)
        builder.train_spans(spans)
        builder.merge(other_builder)
        model = builder.freeze()

    Attributes:
        order: Maximum context length k.
    """

    def __init__(self, order: int = 2):
        if order < 1:
            raise ValueError(f"order must be >= 1: {order}")
        self.order = order
        self._counts: Dict[Tuple[str, ...], Counter] = {}
        self.tokens_seen = 0

    def train(self, items: Iterable[StreamItem]) -> None:
        """
        Slide a window over tokens, counting each token under its contexts.

        Args:
            items: Tokens (or plain strings) and SENTENCE_BREAK markers

        Tokens whose text is not a single Word are skipped and reset the
        window, so the model never proposes a replacement the tokenizer
        would split.
        """
        window: deque = deque(maxlen=self.order)
        for item in items:
            if item is SENTENCE_BREAK:
                window.clear()
                continue
            text = item.text if isinstance(item, Token) else str(item)
            if not is_word(text):
                # Folded form is no longer a single Word ("İ" -> "i\u0307")
                logger.debug(f"Not training on {text!r}")
                window.clear()
                continue
            context = tuple(window)
            for length in range(len(context) + 1):
                key = context[len(context) - length:]
                counter = self._counts.get(key)
                if counter is None:
                    counter = self._counts[key] = Counter()
                counter[text] += 1
            window.append(text)
            self.tokens_seen += 1

    def train_spans(self, spans: Iterable[Span], skip: Optional[AbstractSet[int]] = None) -> None:
        self.train(item for _, item in token_stream(spans, skip))

    def merge(self, other: ModelBuilder) -> ModelBuilder:
        """
        Add another builder's counts into this one.

        Returns:
            self, so merges can be chained or reduced

        Raises:
            ValueError: If the orders differ
        """
        if other.order != self.order:
            raise ValueError(f"cannot merge order {other.order} into order {self.order}")
        for key, counter in other._counts.items():
            mine = self._counts.get(key)
            if mine is None:
                self._counts[key] = Counter(counter)
            else:
                mine.update(counter)
        self.tokens_seen += other.tokens_seen
        return self

    @property
    def context_count(self) -> int:
        return len(self._counts)

    def counts_for(self, context: Tuple[str, ...]) -> Counter:
        """Copy of the counts observed after ``context`` (empty if unseen)."""
        return Counter(self._counts.get(tuple(context), {}))

    def freeze(self) -> MarkovModel:
        """Produce the immutable model used during the mutation phase."""
        tables = {
            key: FrequencyTable.from_counts(counter)
            for key, counter in sorted(self._counts.items())
        }
        logger.debug(
            f"Froze Markov model: {len(tables)} contexts, {self.tokens_seen} tokens",
            extra={"order": self.order, "contexts": len(tables)},
        )
        return MarkovModel(order=self.order, tables=tables)
