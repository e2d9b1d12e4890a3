"""
Module: spans

Purpose:
    Provides the Span dataclass - a typed, contiguous slice of a decoded
    document. A tokenized document is an ordered tuple of spans which,
    concatenated, reproduce the document exactly.

Key Functions:
    - Span.length: Number of characters covered
    - Span.is_text: True for Word/Punctuation/Whitespace spans
    - Span.replace_text(): Copy of a span carrying new text at the same offset

Dependencies:
    - dataclasses (std)
    - enum (std)

Used By:
    - engine.tokenizer: Produces spans
    - engine.mutation.policy: Consumes Word spans
    - engine.content: Reassembles spans into output bytes
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class SpanKind(str, Enum):
    """Classification of a span within a document."""
    STRUCTURAL = "structural"    # Tags, declarations, character references
    WORD = "word"                # Maximal run of letters/numbers
    PUNCTUATION = "punctuation"  # Anything that is neither word nor whitespace
    WHITESPACE = "whitespace"
    OPAQUE = "opaque"            # Comments, script/style bodies: copied verbatim

    def __str__(self) -> str:
        return self.value


TEXT_KINDS = frozenset({SpanKind.WORD, SpanKind.PUNCTUATION, SpanKind.WHITESPACE})


@dataclass(frozen=True, slots=True)
class Span:
    """
    Typed range of a decoded document (immutable).

    Offsets are character offsets into the text obtained by decoding the
    file bytes as UTF-8 with ``surrogateescape``, so every byte sequence
    maps to exactly one text and back.

    Attributes:
        kind: What the span holds
        start: Offset of first character (inclusive)
        text: Exact characters covered by the span
        tag: Lowercase tag name for Structural tag spans ("p", "/p", "img")

    Invariants:
        - start >= 0
        - text is non-empty

    Example:
        >>> span = Span(SpanKind.WORD, 4, "quick")
        >>> span.end
        9
    """

    kind: SpanKind
    start: int
    text: str
    tag: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate span on construction."""
        if self.start < 0:
            raise ValueError(f"start must be >= 0: {self.start}")
        if not self.text:
            raise ValueError(f"span at {self.start} has empty text")

    @property
    def end(self) -> int:
        """Offset one past the last character (exclusive)."""
        return self.start + len(self.text)

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def is_text(self) -> bool:
        """True for natural-language spans (Word/Punctuation/Whitespace)."""
        return self.kind in TEXT_KINDS

    @property
    def is_closing_tag(self) -> bool:
        return self.tag is not None and self.tag.startswith("/")

    @property
    def element(self) -> Optional[str]:
        """Element name without the closing slash, or None for non-tags."""
        if self.tag is None:
            return None
        return self.tag.lstrip("/")

    def replace_text(self, text: str) -> Span:
        """Return a copy of this span holding ``text`` at the same offset."""
        return replace(self, text=text)
