"""
Module: engine.tokenizer.markup

Purpose:
    Structure-aware tokenizer for hypertext documents. Separates tags,
    comments and opaque element bodies (script, style, ...) from the
    natural-language text between them. This is a simplified recognizer,
    not a validating parser: malformed markup never raises.

Key Functions:
    - tokenize_markup(): Split a markup document into spans

Failure Policy:
    - A '<' that does not open a complete tag, comment or declaration is
      left in the text and becomes Punctuation.
    - An unterminated comment, CDATA section or opaque element body runs
      to the end of the document as one Opaque span.

Dependencies:
    - re (std)

Used By:
    - engine.tokenizer.tokenize(): For ContentKind.MARKUP
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import FrozenSet, List, Optional, Pattern, Tuple

from sitefoil.core.models import Span, SpanKind

from .lexer import segment_text

logger = logging.getLogger(__name__)

_SPECIAL_RE = re.compile(r"[<&]")
_TAG_NAME_RE = re.compile(r"(/?)([A-Za-z][A-Za-z0-9:_.-]*)")
_CHAR_REF_RE = re.compile(r"&(?:#[0-9]+|#[xX][0-9A-Fa-f]+|[A-Za-z][A-Za-z0-9]*);")

COMMENT_OPEN = "<!--"
COMMENT_CLOSE = "-->"
CDATA_OPEN = "<![CDATA["
CDATA_CLOSE = "]]>"


@lru_cache(maxsize=64)
def _closing_tag_re(element: str) -> Pattern[str]:
    return re.compile(rf"</{re.escape(element)}(?=[\s/>])", re.IGNORECASE)


def _scan_tag_end(text: str, start: int) -> Optional[int]:
    """
    Find the end of a tag whose name starts at ``start``.

    Quoted attribute values may contain '>'. A quote opens a value only
    right after '=' (whitespace allowed between); elsewhere, as in
    title=it's, it is an ordinary character. Returns the offset just past
    the closing '>', or None when the tag is never closed.
    """
    i = start
    length = len(text)
    after_equals = False
    while i < length:
        ch = text[i]
        if ch == ">":
            return i + 1
        if after_equals and ch in "\"'":
            close = text.find(ch, i + 1)
            if close == -1:
                return None
            i = close + 1
            after_equals = False
            continue
        if ch == "=":
            after_equals = True
        elif not ch.isspace():
            after_equals = False
        i += 1
    return None


class _MarkupScanner:
    """Single-pass scanner producing spans for one document."""

    def __init__(self, text: str, opaque_elements: FrozenSet[str]):
        self.text = text
        self.opaque_elements = opaque_elements
        self.spans: List[Span] = []
        self._text_start = 0

    def _flush_text(self, end: int) -> None:
        if end > self._text_start:
            self.spans.extend(segment_text(self.text[self._text_start:end], self._text_start))
        self._text_start = end

    def _emit(self, kind: SpanKind, start: int, end: int, tag: Optional[str] = None) -> None:
        self._flush_text(start)
        self.spans.append(Span(kind, start, self.text[start:end], tag=tag))
        self._text_start = end

    def run(self) -> List[Span]:
        text = self.text
        pos = 0
        while True:
            match = _SPECIAL_RE.search(text, pos)
            if match is None:
                break
            at = match.start()
            if text[at] == "&":
                pos = self._char_reference(at)
            else:
                pos = self._construct(at)
        self._flush_text(len(text))
        return self.spans

    def _char_reference(self, at: int) -> int:
        ref = _CHAR_REF_RE.match(self.text, at)
        if ref is None:
            return at + 1
        self._emit(SpanKind.STRUCTURAL, at, ref.end())
        return ref.end()

    def _construct(self, at: int) -> int:
        """Recognize whatever starts with '<' at ``at``; return the next scan position."""
        text = self.text
        if text.startswith(COMMENT_OPEN, at):
            # "<!-->" and "<!--->" are complete (empty) comments
            return self._delimited(at, COMMENT_CLOSE, len(COMMENT_OPEN), search_from=at + 2)
        if text.startswith(CDATA_OPEN, at):
            return self._delimited(at, CDATA_CLOSE, len(CDATA_OPEN))
        if text.startswith("<!", at) or text.startswith("<?", at):
            end = text.find(">", at + 2)
            if end == -1:
                return at + 1
            self._emit(SpanKind.STRUCTURAL, at, end + 1)
            return end + 1

        name = _TAG_NAME_RE.match(text, at + 1)
        if name is None:
            return at + 1
        end = _scan_tag_end(text, name.end())
        if end is None:
            return at + 1

        closing, element = name.group(1), name.group(2).lower()
        self._emit(SpanKind.STRUCTURAL, at, end, tag=f"{closing}{element}")

        self_closing = text[end - 2:end] == "/>"
        if not closing and not self_closing and element in self.opaque_elements:
            return self._opaque_body(element, end)
        return end

    def _delimited(self, at: int, terminator: str, skip: int, search_from: Optional[int] = None) -> int:
        end = self.text.find(terminator, at + skip if search_from is None else search_from)
        if end == -1:
            logger.debug(f"Unterminated {self.text[at:at + skip]!r} at offset {at}, copying verbatim")
            end = len(self.text)
        else:
            end += len(terminator)
        self._emit(SpanKind.OPAQUE, at, end)
        return end

    def _opaque_body(self, element: str, body_start: int) -> int:
        """Emit the body of an opaque element as one span, stopping at its closing tag."""
        text = self.text
        closing = _closing_tag_re(element).search(text, body_start)
        if closing is not None and _scan_tag_end(text, closing.end()) is None:
            closing = None
        if closing is None:
            logger.debug(f"Unclosed <{element}> at offset {body_start}, copying verbatim")
            if body_start < len(text):
                self._emit(SpanKind.OPAQUE, body_start, len(text))
            return len(text)
        if closing.start() > body_start:
            self._emit(SpanKind.OPAQUE, body_start, closing.start())
        return closing.start()


def tokenize_markup(text: str, opaque_elements: FrozenSet[str]) -> List[Span]:
    """
    Split a markup document into spans.

    Args:
        text: Decoded document text
        opaque_elements: Lowercase element names whose bodies are opaque

    Returns:
        Spans covering text exactly, in document order

    Example:
        >>> spans = tokenize_markup("<p>Hi <b>there</b></p>", frozenset())
        >>> [(s.kind.value, s.text) for s in spans][:3]
        [('structural', '<p>'), ('word', 'Hi'), ('whitespace', ' ')]
    """
    return _MarkupScanner(text, opaque_elements).run()


def tag_nesting(spans: List[Span]) -> Tuple[int, int]:
    """
    Return (final depth, maximum depth) of open/close tag nesting.

    Void and self-closing elements do not change depth. Used to check that
    mutation leaves document structure untouched.
    """
    depth = 0
    deepest = 0
    for span in spans:
        if span.kind is not SpanKind.STRUCTURAL or span.tag is None:
            continue
        if span.is_closing_tag:
            depth -= 1
        elif span.element not in VOID_ELEMENTS and not span.text.endswith("/>"):
            depth += 1
            deepest = max(deepest, depth)
    return depth, deepest


VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})
