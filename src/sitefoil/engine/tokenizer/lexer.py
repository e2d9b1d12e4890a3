"""
Module: engine.tokenizer.lexer

Purpose:
    Natural-language segmentation shared by the plain-text and markup
    tokenizers, plus the byte <-> text codec and the lossless coverage
    check.

Key Functions:
    - decode_document(): Bytes to text, reversible for any input
    - encode_document(): Inverse of decode_document
    - segment_text(): Split text into Word/Punctuation/Whitespace spans
    - join_spans(): Concatenate span texts
    - verify_coverage(): Raise if spans do not reproduce the text exactly

Dependencies:
    - re (std)

Used By:
    - engine.tokenizer.markup: Segments text between tags
    - engine.content: Reassembly and verification
"""

from __future__ import annotations

import re
from typing import Iterable, List, Sequence

from sitefoil.core.models import Span, SpanKind

from ..errors import ReassemblyInvariantViolation

# Undecodable bytes become lone surrogates and are restored on encode
DOCUMENT_ENCODING = "utf-8"
DOCUMENT_ERRORS = "surrogateescape"

# [^\W_] is exactly the set of characters for which str.isalnum() is true.
# The three alternatives partition every possible character.
_SEGMENT_RE = re.compile(
    r"(?P<word>[^\W_]+)|(?P<space>\s+)|(?P<punct>(?:[^\w\s]|_)+)"
)


def decode_document(data: bytes) -> str:
    """Decode file bytes so that encode_document() restores them exactly."""
    return data.decode(DOCUMENT_ENCODING, errors=DOCUMENT_ERRORS)


def encode_document(text: str) -> bytes:
    return text.encode(DOCUMENT_ENCODING, errors=DOCUMENT_ERRORS)


def segment_text(text: str, offset: int = 0) -> List[Span]:
    """
    Split natural-language text into Word, Whitespace and Punctuation spans.

    Args:
        text: Text to segment
        offset: Document offset of text[0]

    Returns:
        Spans in order, covering text exactly

    Example:
        >>> [s.text for s in segment_text("Hi, you!")]
        ['Hi', ',', ' ', 'you', '!']
    """
    spans: List[Span] = []
    for match in _SEGMENT_RE.finditer(text):
        if match.lastgroup == "word":
            kind = SpanKind.WORD
        elif match.lastgroup == "space":
            kind = SpanKind.WHITESPACE
        else:
            kind = SpanKind.PUNCTUATION
        spans.append(Span(kind, offset + match.start(), match.group()))
    return spans


def join_spans(spans: Iterable[Span]) -> str:
    return "".join(span.text for span in spans)


def verify_coverage(text: str, spans: Sequence[Span]) -> None:
    """
    Check the lossless segmentation invariant.

    Spans must be contiguous, start at offset 0, and reproduce ``text``.

    Raises:
        ReassemblyInvariantViolation: At the first offset that disagrees
    """
    position = 0
    for span in spans:
        if span.start != position:
            raise ReassemblyInvariantViolation("Spans are not contiguous", offset=position)
        if text[span.start:span.end] != span.text:
            raise ReassemblyInvariantViolation("Span text differs from input", offset=span.start)
        position = span.end
    if position != len(text):
        raise ReassemblyInvariantViolation(
            f"Spans cover {position} of {len(text)} characters", offset=position
        )
