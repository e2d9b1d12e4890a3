"""
Module: engine.tokenizer

Purpose:
    Lexical tokenizer. Turns the bytes of a text or markup file into an
    ordered list of typed spans that losslessly cover the input.

Key Functions:
    - tokenize(): Bytes + content kind to spans
    - tokenize_text(): Decoded text + content kind to spans

Used By:
    - engine.content: Inventory scan and mutation pass
"""

from __future__ import annotations

from typing import FrozenSet, List, Optional

from sitefoil.core.models import ContentKind, Span

from ..config import DEFAULT_OPAQUE_ELEMENTS
from .lexer import (
    decode_document,
    encode_document,
    join_spans,
    segment_text,
    verify_coverage,
)
from .markup import VOID_ELEMENTS, tag_nesting, tokenize_markup


def tokenize_text(
    text: str,
    kind: ContentKind,
    opaque_elements: Optional[FrozenSet[str]] = None,
) -> List[Span]:
    """
    Tokenize decoded text.

    Args:
        text: Decoded document
        kind: MARKUP uses the structure-aware scanner; anything else is
            segmented as plain text
        opaque_elements: Elements whose bodies are copied verbatim
            (defaults to DEFAULT_OPAQUE_ELEMENTS)

    Returns:
        Spans covering text exactly
    """
    if kind is ContentKind.MARKUP:
        if opaque_elements is None:
            opaque_elements = DEFAULT_OPAQUE_ELEMENTS
        return tokenize_markup(text, opaque_elements)
    return segment_text(text)


def tokenize(
    data: bytes,
    kind: ContentKind,
    opaque_elements: Optional[FrozenSet[str]] = None,
) -> List[Span]:
    """Tokenize raw file bytes. See tokenize_text()."""
    return tokenize_text(decode_document(data), kind, opaque_elements)


__all__ = [
    "VOID_ELEMENTS",
    "decode_document",
    "encode_document",
    "join_spans",
    "segment_text",
    "tag_nesting",
    "tokenize",
    "tokenize_markup",
    "tokenize_text",
    "verify_coverage",
]
