"""
Unit Tests for the structure-aware markup tokenizer.
"""

import pytest

from sitefoil.core.models import ContentKind, SpanKind
from sitefoil.engine.config import DEFAULT_OPAQUE_ELEMENTS
from sitefoil.engine.tokenizer import join_spans, tag_nesting, tokenize_markup, tokenize_text


def tokenize(text):
    spans = tokenize_markup(text, DEFAULT_OPAQUE_ELEMENTS)
    assert join_spans(spans) == text
    return spans


def of_kind(spans, kind):
    return [s.text for s in spans if s.kind is kind]


class TestTags:
    """Tests for tag recognition."""

    def test_tokenize_when_simple_paragraph_then_tags_structural(self):
        # Act
        spans = tokenize("<p>Hello <b>world</b></p>")

        # Assert
        assert of_kind(spans, SpanKind.STRUCTURAL) == ["<p>", "<b>", "</b>", "</p>"]
        assert of_kind(spans, SpanKind.WORD) == ["Hello", "world"]
        assert [s.tag for s in spans if s.tag] == ["p", "b", "/b", "/p"]

    def test_tokenize_when_attribute_contains_gt_then_tag_not_split(self):
        spans = tokenize('<a title="a > b" href=\'x>y\'>link</a>')
        assert spans[0].text == '<a title="a > b" href=\'x>y\'>'
        assert of_kind(spans, SpanKind.WORD) == ["link"]

    def test_tokenize_when_apostrophe_in_unquoted_value_then_literal(self):
        # Arrange
        text = "<p><a title=it's>Alpha</a> bravo charlie</p><p>golf'</p>"

        # Act
        spans = tokenize(text)

        # Assert
        assert of_kind(spans, SpanKind.STRUCTURAL) == ["<p>", "<a title=it's>", "</a>", "</p>", "<p>", "</p>"]
        assert of_kind(spans, SpanKind.WORD) == ["Alpha", "bravo", "charlie", "golf"]
        assert tag_nesting(spans) == (0, 2)

    def test_tokenize_when_space_around_equals_then_value_still_quoted(self):
        spans = tokenize('<a href = "x > y">z</a>')
        assert spans[0].text == '<a href = "x > y">'
        assert of_kind(spans, SpanKind.WORD) == ["z"]

    def test_tokenize_when_uppercase_tag_then_tag_lowercased(self):
        spans = tokenize("<DIV Class=x>Text</DIV>")
        assert spans[0].tag == "div"
        assert spans[-1].tag == "/div"

    def test_tokenize_when_doctype_then_structural_without_tag(self):
        spans = tokenize("<!DOCTYPE html><html></html>")
        assert spans[0].kind is SpanKind.STRUCTURAL
        assert spans[0].tag is None

    def test_tokenize_when_attribute_words_then_not_word_spans(self):
        spans = tokenize('<img alt="quick brown fox" src="fox.png">')
        assert of_kind(spans, SpanKind.WORD) == []


class TestCharacterReferences:
    """Tests for entity handling."""

    def test_tokenize_when_named_entity_then_structural(self):
        spans = tokenize("fish &amp; chips")
        assert "&amp;" in of_kind(spans, SpanKind.STRUCTURAL)
        assert of_kind(spans, SpanKind.WORD) == ["fish", "chips"]

    def test_tokenize_when_numeric_entities_then_structural(self):
        spans = tokenize("&#169; &#x2014;")
        assert of_kind(spans, SpanKind.STRUCTURAL) == ["&#169;", "&#x2014;"]

    def test_tokenize_when_bare_ampersand_then_punctuation(self):
        spans = tokenize("R & D")
        assert of_kind(spans, SpanKind.PUNCTUATION) == ["&"]


class TestOpaqueRegions:
    """Comments, CDATA and opaque element bodies are copied verbatim."""

    def test_tokenize_when_comment_then_single_opaque_span(self):
        spans = tokenize("a<!-- the <b>quick</b> fox -->b")
        assert of_kind(spans, SpanKind.OPAQUE) == ["<!-- the <b>quick</b> fox -->"]
        assert of_kind(spans, SpanKind.WORD) == ["a", "b"]

    def test_tokenize_when_abruptly_closed_empty_comments_then_text_after_kept(self):
        spans = tokenize("a<!-->b c<!--->d")
        assert of_kind(spans, SpanKind.OPAQUE) == ["<!-->", "<!--->"]
        assert of_kind(spans, SpanKind.WORD) == ["a", "b", "c", "d"]

    def test_tokenize_when_script_then_body_opaque(self):
        # Arrange
        text = "<script>if (a < b && c > d) { say('</p>'); }</script><p>Hi</p>"

        # Act
        spans = tokenize(text)

        # Assert
        assert of_kind(spans, SpanKind.OPAQUE) == ["if (a < b && c > d) { say('</p>'); }"]
        assert [s.tag for s in spans if s.tag] == ["script", "/script", "p", "/p"]

    @pytest.mark.parametrize("element", ["style", "pre", "code", "textarea", "svg"])
    def test_tokenize_when_opaque_element_then_words_untouched(self, element):
        spans = tokenize(f"<{element}>keep these words</{element}>")
        assert of_kind(spans, SpanKind.WORD) == []
        assert of_kind(spans, SpanKind.OPAQUE) == ["keep these words"]

    def test_tokenize_when_closing_tag_case_differs_then_still_closes(self):
        spans = tokenize("<style>p{}</STYLE>after")
        assert of_kind(spans, SpanKind.WORD) == ["after"]

    def test_tokenize_when_script_prefix_lookalike_then_not_closed(self):
        spans = tokenize("<script>x</scripts>y</script>z")
        assert of_kind(spans, SpanKind.OPAQUE) == ["x</scripts>y"]
        assert of_kind(spans, SpanKind.WORD) == ["z"]

    def test_tokenize_when_custom_opaque_elements_then_respected(self):
        spans = tokenize_text("<pre>words here</pre>", ContentKind.MARKUP, frozenset({"script"}))
        assert of_kind(spans, SpanKind.WORD) == ["words", "here"]


class TestMalformedMarkup:
    """Malformed input still tokenizes losslessly and fails safe."""

    def test_tokenize_when_unterminated_comment_then_opaque_to_end(self):
        spans = tokenize("before <!-- never closed words")
        assert spans[-1].kind is SpanKind.OPAQUE
        assert spans[-1].text == "<!-- never closed words"

    def test_tokenize_when_unclosed_script_then_opaque_to_end(self):
        spans = tokenize("<p>x</p><script>var a = 1; words")
        assert spans[-1].kind is SpanKind.OPAQUE
        assert of_kind(spans, SpanKind.WORD) == ["x"]

    def test_tokenize_when_stray_less_than_then_punctuation(self):
        spans = tokenize("1 < 2 and <3 hearts")
        assert "<" in of_kind(spans, SpanKind.PUNCTUATION)
        assert of_kind(spans, SpanKind.STRUCTURAL) == []

    def test_tokenize_when_tag_never_closed_then_text(self):
        spans = tokenize("<p class='x' never ends")
        assert of_kind(spans, SpanKind.STRUCTURAL) == []

    @pytest.mark.parametrize("text", [
        "<", "<<>>", "</", "<!", "<!-", "&", "&;", "<a href=\"", "</p", "<![CDATA[x",
        "<?xml version='1.0'?><p>x</p>", "<p/><br/>text", "﻿<html>",
    ])
    def test_tokenize_when_fragment_then_lossless(self, text):
        tokenize(text)


class TestTagNesting:
    """Tests for tag_nesting()."""

    def test_tag_nesting_when_balanced_then_zero_final_depth(self):
        spans = tokenize("<div><p>a<br>b<img src=x></p><hr/></div>")
        assert tag_nesting(spans) == (0, 2)

    def test_tag_nesting_when_unbalanced_then_reports_depth(self):
        spans = tokenize("<div><p>open")
        assert tag_nesting(spans) == (2, 2)
